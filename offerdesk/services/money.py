"""Money and platform-id helpers.

Amounts are stored as integer minor units ("cents"). Conversions use
Decimal so that e.g. 19.995 rounds to 2000, not 1999.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENT = Decimal("0.01")
# Largest value an offers.*_cents column (int4) can hold.
MAX_MINOR_UNITS = 2**31 - 1
_TRAILING_DIGITS = re.compile(r"(\d+)$")


def to_minor_units(value: object) -> int | None:
    """Parse a major-unit amount and round half away from zero to minor units.

    Returns None when the value is not a finite number or does not fit in
    MAX_MINOR_UNITS.

    Example:
        >>> to_minor_units("19.995")
        2000
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        amount = Decimal(text)
        if not amount.is_finite():
            return None
        # ROUND_HALF_UP in decimal rounds ties away from zero for negatives too.
        cents = int(amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100)
    except InvalidOperation:
        return None
    if abs(cents) > MAX_MINOR_UNITS:
        return None
    return cents


def to_non_negative_int(value: object) -> int:
    """Coerce a loosely typed integer field; anything invalid, negative or above MAX_MINOR_UNITS becomes 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return 0
    if number < 0 or number > MAX_MINOR_UNITS:
        return 0
    return number


def minor_to_major_str(cents: int) -> str:
    """1234 -> "12.34"."""
    return str((Decimal(int(cents)) / 100).quantize(_CENT))


def numeric_platform_id(value: object) -> int | None:
    """Extract the trailing numeric id from a platform id.

    Accepts both plain ids ("4455") and global ids
    ("gid://shopify/ProductVariant/4455"). Returns None when there is no
    trailing number or the number is 0.
    """
    match = _TRAILING_DIGITS.search(str(value or "").strip())
    if not match:
        return None
    number = int(match.group(1))
    return number or None
