"""Secure password generation for auto-provisioned accounts."""

import random
import re
import secrets

UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*"
ALPHABET = UPPERCASE + LOWERCASE + DIGITS + SYMBOLS

MIN_LENGTH = 4
MIN_STRONG_LENGTH = 8

_shuffler = random.SystemRandom()


def generate_secure_password(length: int = 12) -> str:
    """Random password with at least one character from each class.

    Every character is drawn from the OS CSPRNG; positions are then shuffled
    so the guaranteed characters do not sit at the front.
    """
    if length < MIN_LENGTH:
        raise ValueError(f"Password length must be at least {MIN_LENGTH}")

    chars = [
        secrets.choice(UPPERCASE),
        secrets.choice(LOWERCASE),
        secrets.choice(DIGITS),
        secrets.choice(SYMBOLS),
    ]
    chars.extend(secrets.choice(ALPHABET) for _ in range(length - MIN_LENGTH))
    _shuffler.shuffle(chars)
    return "".join(chars)


def is_password_strong(password: str) -> bool:
    if len(password) < MIN_STRONG_LENGTH:
        return False
    return all(
        (
            re.search(r"[A-Z]", password),
            re.search(r"[a-z]", password),
            re.search(r"[0-9]", password),
            re.search(r"[!@#$%^&*]", password),
        )
    )
