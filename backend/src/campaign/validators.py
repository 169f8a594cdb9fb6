"""Form validation rules shared by the registration and redemption flows."""

import re

from campaign.errors import ValidationError
from campaign.settings import settings

PRODUCT_CODE_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9_-]{0,63}$")
# Self-chosen influencer codes, as limited by the registration form
INFLUENCER_CODE_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9_-]{0,9}$")


def clean(value: str | None) -> str:
    """Strip surrounding whitespace; None becomes an empty string."""
    return (value or "").strip()


def normalize_code(code: str | None) -> str:
    """Codes are compared trimmed and upper-cased."""
    return clean(code).upper()


def require_fields(message: str, *values: str | None) -> None:
    """Raise if any of the values is blank.

    Raises:
        ValidationError: with the given message
    """
    if any(not clean(value) for value in values):
        raise ValidationError(message)


def check_password(password: str) -> None:
    """Enforce the minimum password length."""
    if len(password) < settings.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.min_password_length} characters long.",
            title="Password Too Short",
        )


def split_full_name(full_name: str | None) -> tuple[str, str]:
    """Split "First Last Name" into ("First", "Last Name")."""
    parts = clean(full_name).split(maxsplit=1)
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


def is_valid_product_code(code: str) -> bool:
    return bool(PRODUCT_CODE_PATTERN.match(code))


def check_influencer_code(code: str) -> None:
    """Validate a normalized, self-chosen influencer code.

    Args:
        code: Code after ``normalize_code``.

    Raises:
        ValidationError: code is longer than 10 characters or uses anything
            besides letters, digits, dashes and underscores
    """
    if not INFLUENCER_CODE_PATTERN.match(code):
        raise ValidationError(
            "Codes can be up to 10 letters, digits, dashes or underscores.",
            title="Invalid Code",
        )
