"""
Identity normalization and hashing.

These functions define what "the same person" means for deduplication. They
must be applied identically at admission time and at any later comparison.
"""

import hashlib
import re

_NON_DIGITS = re.compile(r"\D")


def normalize_email(value: str | None) -> str:
    """Trim and lower-case an email address."""
    return (value or "").strip().lower()


def normalize_phone(value: str | None) -> str:
    """
    Keep digits and a single leading "+", strip everything else.

    "(555) 123-4567" -> "5551234567", "+1 555 123 4567" -> "+15551234567".
    Returns "" when the input has no digits.
    """
    text = (value or "").strip()
    digits = _NON_DIGITS.sub("", text)
    if not digits:
        return ""
    return f"+{digits}" if text.startswith("+") else digits


def identity_hash(value: str, salt: str) -> str:
    """Salted SHA-256 of a normalized identity value, hex encoded."""
    return hashlib.sha256(f"{salt}:{value}".encode("utf-8")).hexdigest()
