"""
utils/validation_utils.py

Purpose: Input validation

- Email shape check used during onboarding
- Phone number format for HTTP routes
- Summary period parsing from free text and query strings
"""

import re


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SUMMARY_PERIODS = ("week", "month", "ytd")


def validate_email(email: str) -> bool:
    """
    Validates the general shape of an email address.

    local-part "@" domain-part, the domain contains a dot,
    no whitespace anywhere.

    Args:
        email: Email string to validate (already trimmed)

    Returns:
        True if valid, False otherwise
    """
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


def validate_phone_number(phone: str) -> bool:
    """
    Validates an E.164-like phone number: leading plus sign then digits.

    Args:
        phone: Phone number string

    Returns:
        True if the number starts with + and has 6-15 digits
    """
    if not phone:
        return False
    return bool(re.match(r"^\+\d{6,15}$", phone.strip()))


def validate_period(period: str) -> bool:
    """
    Validates a summary period query value (week, month or ytd).
    """
    return period in SUMMARY_PERIODS


def detect_summary_period(text: str) -> str:
    """
    Picks the summary period requested in a chat message.

    "ytd" or "year" wins over "month"; anything else means the last week.

    Args:
        text: Message body, e.g. "summary month"

    Returns:
        One of week, month, ytd
    """
    lower_text = (text or "").lower()
    if "ytd" in lower_text or "year" in lower_text:
        return "ytd"
    if "month" in lower_text:
        return "month"
    return "week"


def is_summary_request(text: str) -> bool:
    return "summary" in (text or "").lower()


def is_join_request(text: str) -> bool:
    return "join" in (text or "").lower()

