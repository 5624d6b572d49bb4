"""Input validation and normalization for engine operations.

Every ``validate_*`` function returns the normalized value (stripped
strings, parsed decimals, enum members) or raises ``ValidationError``.
Money parsing raises ``AmountFormatError``.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from econsim.exceptions import AmountFormatError, ValidationError
from econsim.models import JobType

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
MAX_DECIMALS = 2
# Largest single amount or starting balance accepted by default
MAX_AMOUNT = Decimal("1000000000")

NAME_LENGTH = (2, 100)
USERNAME_LENGTH = (3, 20)
MIN_PASSWORD_LENGTH = 6
JOB_TITLE_LENGTH = (3, 100)
MAX_JOB_DESCRIPTION = 500
APPLICATION_TEXT_LENGTH = (10, 500)
CLASS_NAME_LENGTH = (1, 20)
CURRENCY_NAME_LENGTH = (2, 50)
CURRENCY_SYMBOL_LENGTH = (1, 5)


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def validate_length(value: Any, field: str, min_len: int, max_len: int) -> str:
    """Strip ``value`` and check ``min_len <= len <= max_len``."""
    text = _require_text(value, field)
    if len(text) < min_len:
        raise ValidationError(f"{field} must be at least {min_len} characters")
    if len(text) > max_len:
        raise ValidationError(f"{field} cannot be more than {max_len} characters")
    return text


def validate_name(name: Any) -> str:
    return validate_length(name, "Name", *NAME_LENGTH)


def validate_username(username: Any) -> str:
    text = validate_length(username, "Username", *USERNAME_LENGTH)
    if not USERNAME_PATTERN.match(text):
        raise ValidationError("Username may only contain letters, digits and underscore")
    return text


def validate_password(password: Any) -> str:
    """Check the password policy; the password itself is returned unchanged."""
    _require_text(password, "Password")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def validate_account_number(account_number: Any, length: int = 3) -> str:
    text = _require_text(account_number, "Account number")
    if not text.isdigit() or not text.isascii():
        raise ValidationError("Account number may only contain digits")
    if len(text) != length:
        raise ValidationError(f"Account number must be {length} digits")
    return text


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise AmountFormatError(f"{field} must be a number")
    try:
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, int):
            number = Decimal(value)
        elif isinstance(value, float):
            number = Decimal(repr(value))
        elif isinstance(value, str):
            number = Decimal(value.strip())
        else:
            raise AmountFormatError(f"{field} must be a number")
    except InvalidOperation as exc:
        raise AmountFormatError(f"{field} must be a number") from exc

    if not number.is_finite():
        raise AmountFormatError(f"{field} must be a finite number")
    if number.as_tuple().exponent < -MAX_DECIMALS:
        raise AmountFormatError(f"{field} can have at most {MAX_DECIMALS} decimals")
    return number


def parse_amount(value: Any, field: str = "Amount", maximum: Decimal = MAX_AMOUNT) -> Decimal:
    """Parse a strictly positive money amount with at most two decimals."""
    number = _to_decimal(value, field)
    if number <= 0:
        raise AmountFormatError(f"{field} must be greater than 0")
    if number > maximum:
        raise AmountFormatError(f"{field} cannot be more than {maximum}")
    return number


def parse_balance(value: Any, field: str = "Balance", maximum: Decimal = MAX_AMOUNT) -> Decimal:
    """Parse a non-negative money amount with at most two decimals."""
    number = _to_decimal(value, field)
    if number < 0:
        raise AmountFormatError(f"{field} cannot be negative")
    if number > maximum:
        raise AmountFormatError(f"{field} cannot be more than {maximum}")
    return number


def validate_job_title(title: Any) -> str:
    return validate_length(title, "Job title", *JOB_TITLE_LENGTH)


def validate_job_description(description: Any) -> str:
    """Descriptions are optional; None and blank become the empty string."""
    if description is None:
        return ""
    if not isinstance(description, str):
        raise ValidationError("Description must be text")
    text = description.strip()
    if len(text) > MAX_JOB_DESCRIPTION:
        raise ValidationError(f"Description cannot be more than {MAX_JOB_DESCRIPTION} characters")
    return text


def validate_job_type(job_type: Any) -> JobType:
    try:
        return JobType(job_type)
    except ValueError as exc:
        allowed = ", ".join(t.value for t in JobType)
        raise ValidationError(f"Invalid job type {job_type!r}, expected one of: {allowed}") from exc


def validate_application_text(text: Any) -> str:
    return validate_length(text, "Application text", *APPLICATION_TEXT_LENGTH)


def validate_class_name(name: Any) -> str:
    return validate_length(name, "Class name", *CLASS_NAME_LENGTH)


def validate_currency_name(name: Any) -> str:
    return validate_length(name, "Currency name", *CURRENCY_NAME_LENGTH)


def validate_currency_symbol(symbol: Any) -> str:
    return validate_length(symbol, "Currency symbol", *CURRENCY_SYMBOL_LENGTH).upper()


def validate_flag(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false")
    return value


def reject_unknown_fields(fields: dict[str, Any], allowed: set[str], what: str) -> None:
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(f"Cannot change {', '.join(unknown)} on {what}")
