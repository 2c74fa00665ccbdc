"""
Input sanitization for untrusted guest input.

The sanitizers never raise: malformed input degrades to an empty or
truncated string. The ``validate_*`` helpers return an error message or
``None`` and are used by :mod:`apps.core.validation`.
"""

from __future__ import annotations

import re

MAX_TEXT_LENGTH = 1000
MAX_PHONE_LENGTH = 20
MIN_PASSWORD_LENGTH = 8

_UNSAFE_CHARS = re.compile(r'[<>"/]')
_SCRIPT_SCHEMES = re.compile(r"(?:javascript|data):", re.IGNORECASE)
_EVENT_HANDLERS = re.compile(r"on\w+=", re.IGNORECASE)
_PHONE_DISALLOWED = re.compile(r"[^0-9\s\-()+]")
_EMAIL_RE = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9\-]+(?:\.[a-z0-9\-]+)*\.[a-z]{2,}$")


def sanitize_text(value) -> str:
    """Strip markup characters, script markers and handler attributes."""
    if not value:
        return ""

    text = str(value)
    # removing one marker can join the halves of another, repeat until stable
    while True:
        cleaned = _UNSAFE_CHARS.sub("", text)
        cleaned = _SCRIPT_SCHEMES.sub("", cleaned)
        cleaned = _EVENT_HANDLERS.sub("", cleaned)
        cleaned = cleaned.strip()[:MAX_TEXT_LENGTH]
        if cleaned == text:
            return cleaned
        text = cleaned


def sanitize_email(value) -> str:
    """Return the lower-cased address, or '' when it is not an email."""
    sanitized = sanitize_text(value).lower()
    return sanitized if _EMAIL_RE.match(sanitized) else ""


def sanitize_phone(value) -> str:
    """Keep digits, spaces, hyphens, parentheses and a leading plus."""
    if not value:
        return ""

    cleaned = _PHONE_DISALLOWED.sub("", str(value)).strip()
    if cleaned.startswith("+"):
        cleaned = "+" + cleaned[1:].replace("+", "")
    else:
        cleaned = cleaned.replace("+", "")
    return cleaned[:MAX_PHONE_LENGTH].strip()


def validate_required(value, field_name: str) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return f"{field_name} is required"
    return None


def validate_email(value: str) -> str | None:
    if not value or not _EMAIL_RE.match(value):
        return "Please enter a valid email address"
    return None


def validate_password(value: str) -> str | None:
    if not value or len(value) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if not (
        re.search(r"[a-z]", value)
        and re.search(r"[A-Z]", value)
        and re.search(r"\d", value)
    ):
        return "Password must contain at least one uppercase letter, one lowercase letter, and one number"
    return None


__all__ = [
    "sanitize_text",
    "sanitize_email",
    "sanitize_phone",
    "validate_required",
    "validate_email",
    "validate_password",
]
