"""
utils/validation_utils.py

Purpose: Input validation

- PAN card normalization
- Email normalization
- Referral code normalization
- ObjectId parsing for path/body ids
- Input sanitization
"""

import re
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId


def normalize_pan_card(pan_card: str) -> str:
    """
    PAN cards are stored upper-case so uniqueness is case-insensitive.
    """
    return (pan_card or "").strip().upper()


def normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def normalize_referral_code(code: Optional[str]) -> str:
    """Referral codes are issued upper-case; lookups ignore case and padding."""
    return (code or "").strip().upper()


def to_object_id(value) -> Optional[ObjectId]:
    """
    Parses a client-supplied id.

    Returns:
        ObjectId, or None if the value is not a valid id
    """
    if isinstance(value, ObjectId):
        return value
    if not value:
        return None
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitizes free-form user input.

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]

    # Remove potentially dangerous characters
    text = re.sub(r"[<>{}\[\]]", "", text)

    # Normalize whitespace
    text = " ".join(text.split())

    return text.strip()
