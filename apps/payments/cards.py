"""Credit card helpers: brand detection, formatting and validation."""

from __future__ import annotations

import re
from datetime import date

_NON_DIGITS = re.compile(r"\D")

_CARD_TYPES = (
    (re.compile(r"^4"), "visa"),
    (re.compile(r"^5[1-5]"), "mastercard"),
    (re.compile(r"^3[47]"), "amex"),
    (re.compile(r"^6"), "discover"),
    (re.compile(r"^35"), "jcb"),
    (re.compile(r"^30"), "diners"),
)


def _digits(value) -> str:
    return _NON_DIGITS.sub("", value or "")


def get_credit_card_type(number: str) -> str:
    digits = _digits(number)
    for pattern, card_type in _CARD_TYPES:
        if pattern.match(digits):
            return card_type
    return "unknown"


def format_credit_card(value: str) -> str:
    """Group the first 16 digits in blocks of four: '4532 0151 1283 0366'."""
    digits = _digits(value)[:16]
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_expiry_date(value: str) -> str:
    """'1228' -> '12/28'"""
    digits = _digits(value)
    if len(digits) >= 2:
        return f"{digits[:2]}/{digits[2:4]}"
    return digits


def validate_credit_card(number: str) -> bool:
    """13-19 digits passing the Luhn checksum."""
    digits = _digits(number)
    if not 13 <= len(digits) <= 19:
        return False

    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_expiry_date(expiry: str, today: date | None = None) -> bool:
    """MMYY (separators ignored), not earlier than the current month."""
    digits = _digits(expiry)
    if len(digits) != 4:
        return False

    month = int(digits[:2])
    year = int(digits[2:]) + 2000
    if not 1 <= month <= 12:
        return False

    today = today or date.today()
    return (year, month) >= (today.year, today.month)


def validate_cvv(cvv: str, card_type: str = "unknown") -> bool:
    digits = _digits(cvv)
    expected = 4 if card_type == "amex" else 3
    return len(digits) == expected and digits == (cvv or "").strip()


def mask_card_number(number: str) -> str:
    return f"**** **** **** {_digits(number)[-4:]}"
