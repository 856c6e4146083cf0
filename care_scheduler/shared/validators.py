"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Keeps a leading "+" and the digits, dropping spaces, dots, dashes and
    parentheses.

    Raises:
        ValueError: If the number has fewer than 7 or more than 15 digits
    """
    if not phone:
        return phone

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""
    digits = re.sub(r"\D", "", phone)

    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 7 and 15 digits")

    return f"{prefix}{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def password_problem(password: str) -> Optional[str]:
    """
    Check a new password against the account password rule:
    at least 8 characters, one uppercase letter and one number.

    Returns:
        A message describing the first unmet requirement, or None if valid
    """
    if len(password) < 8:
        return "Password must be at least 8 characters long"
    if not re.search(r"[A-Z]", password):
        return "Password must contain at least one uppercase letter"
    if not re.search(r"[0-9]", password):
        return "Password must contain at least one number"
    return None


def to_store_time(value: Optional[datetime]) -> Optional[datetime]:
    """
    Single storage form for appointment times.

    Offset-aware values are converted to naive UTC, the way a timestamptz
    column hands them back; naive values are kept verbatim.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
