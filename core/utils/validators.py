"""Validation utilities for the recruitment domain's field formats."""

import re
from datetime import date, datetime
from typing import Any, Optional
from email_validator import validate_email as _validate_email, EmailNotValidError
from personnummer import personnummer


ALPHANUMERIC_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
# Letters (any script) separated by single apostrophes, spaces or hyphens
NAME_PATTERN = re.compile(r"^[^\W\d_]+(?:['\- ][^\W\d_]+)*$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
PERSONAL_NUMBER_PATTERN = re.compile(r"^\d{8}-\d{4}$")


def validate_alphanumeric(value: Any) -> tuple[bool, Optional[str]]:
    """
    Validate that a value is a non-empty ASCII alphanumeric string.

    Args:
        value: Value to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str) or not ALPHANUMERIC_PATTERN.match(value):
        return False, "must consist of letters and numbers only"
    return True, None


def validate_name(value: Any) -> tuple[bool, Optional[str]]:
    """
    Validate a person name: letters, optionally joined by apostrophes,
    spaces or hyphens.
    """
    if not isinstance(value, str) or not NAME_PATTERN.match(value):
        return False, "must consist of letters"
    return True, None


def validate_email(email: str) -> tuple[bool, Optional[str]]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, normalized_email or error_message)
    """
    try:
        validation = _validate_email(email, check_deliverability=False)
        return True, validation.normalized
    except EmailNotValidError as e:
        return False, str(e)


def validate_positive_integer(value: Any) -> tuple[bool, Optional[str]]:
    """Validate a whole number greater than zero."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return False, "must be a positive whole number"
    return True, None


def validate_non_negative_integer(value: Any) -> tuple[bool, Optional[str]]:
    """Validate a whole number greater than or equal to zero."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return False, "must be a non-negative whole number"
    return True, None


def validate_non_negative_number(value: Any) -> tuple[bool, Optional[str]]:
    """Validate an int or float greater than or equal to zero."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return False, "must be a non-negative number"
    return True, None


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a strict ``YYYY-MM-DD`` date.

    Args:
        value: A ``date`` or a string

    Returns:
        The parsed date, or None if the value is not a valid ISO date
    """
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def validate_iso_date(value: Any) -> tuple[bool, Optional[str]]:
    """Validate a ``YYYY-MM-DD`` date string (or date object)."""
    if parse_iso_date(value) is None:
        return False, "must be a date formatted as YYYY-MM-DD"
    return True, None


def validate_personal_number(value: Any) -> tuple[bool, Optional[str]]:
    """
    Validate a Swedish personal identity number.

    Format is ``YYYYMMDD-XXXX``. The date and check digit rules
    (coordination numbers included) are checked by ``personnummer``.

    Args:
        value: Personal number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    error = "should be formatted correctly, example (YYYYMMDD-XXXX)"
    if not isinstance(value, str):
        return False, error

    if not PERSONAL_NUMBER_PATTERN.match(value) or not personnummer.valid(value):
        return False, error

    return True, None


def ensure_valid(result: tuple[bool, Optional[str]], field_name: str) -> None:
    """
    Raise ValueError when a validation result failed.

    Used by pydantic validators so that one set of rules backs both the
    request schemas and the result objects.
    """
    is_valid, message = result
    if not is_valid:
        raise ValueError(f"{field_name} {message}")
