"""In-process identity provider for development and testing.

Stores salted PBKDF2 hashes only; the plaintext password is never kept.
Hashing runs in a worker thread so sign-up and sign-in do not stall the loop.
"""

import asyncio
import hashlib
import hmac
import secrets
from dataclasses import dataclass, field
from uuid import uuid4

from checkout.errors import IdentityError
from checkout.identity.port import IdentityProvider, Session

_ITERATIONS = 100_000


def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _ITERATIONS)


@dataclass
class IdentityRecord:
    user_id: str
    email: str
    salt: bytes = field(repr=False)
    password_hash: bytes = field(repr=False)
    profile: dict = field(default_factory=dict)


class InMemoryIdentityProvider(IdentityProvider):
    def __init__(self) -> None:
        self._records: dict[str, IdentityRecord] = {}
        self._sessions: dict[str, Session] = {}

    def find_by_email(self, email: str) -> IdentityRecord | None:
        return self._records.get(email.strip().lower())

    async def sign_up(self, email, password, profile):
        key = email.strip().lower()
        if "@" not in key:
            raise IdentityError("Unable to validate email address: invalid format")
        if key in self._records:
            raise IdentityError("User already registered")

        salt = secrets.token_bytes(16)
        password_hash = await asyncio.to_thread(_hash_password, password, salt)
        # Re-check: another sign-up may have landed while hashing
        if key in self._records:
            raise IdentityError("User already registered")

        record = IdentityRecord(
            user_id=str(uuid4()),
            email=key,
            salt=salt,
            password_hash=password_hash,
            profile=dict(profile),
        )
        self._records[key] = record
        return record.user_id

    async def sign_in(self, email, password):
        record = self.find_by_email(email)
        if record is None:
            raise IdentityError("Invalid login credentials")
        candidate = await asyncio.to_thread(_hash_password, password, record.salt)
        if not hmac.compare_digest(record.password_hash, candidate):
            raise IdentityError("Invalid login credentials")

        session = Session(
            user_id=record.user_id,
            email=record.email,
            access_token=secrets.token_urlsafe(32),
        )
        self._sessions[session.access_token] = session
        return session

    async def get_session(self, access_token):
        if not access_token:
            return None
        return self._sessions.get(access_token)

    async def sign_out(self, access_token):
        self._sessions.pop(access_token, None)
