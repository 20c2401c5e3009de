"""Money helpers. All amounts are integers in minor units (paise, cents)."""

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def _group_indian(whole: int) -> str:
    digits = str(whole)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_money(amount: int, currency: str = "INR", symbol: bool = True) -> str:
    """Format minor units for display, e.g. ``50000`` INR -> ``₹500.00``.

    Rupee amounts use lakh/crore grouping. With ``symbol=False`` the ISO code
    is used as prefix, for renderers whose fonts lack currency glyphs.
    """
    currency = currency.upper()
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(int(amount)), 100)
    grouped = _group_indian(major) if currency == "INR" else f"{major:,}"

    if symbol and currency in CURRENCY_SYMBOLS:
        prefix = CURRENCY_SYMBOLS[currency]
    else:
        prefix = f"{currency} "
    return f"{sign}{prefix}{grouped}.{minor:02d}"


def percentage_of(amount: int, percent: float) -> int:
    """``round(amount * percent / 100)`` with halves rounded up, in minor units."""
    value = Decimal(int(amount)) * Decimal(str(percent)) / Decimal(100)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_total(subtotal: int, discount: int, tax: int = 0) -> int:
    """Grand total: the discount never takes the price below zero; tax is added on top."""
    return max(0, subtotal - discount) + tax
