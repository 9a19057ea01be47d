"""
Pure input predicates for the onboarding forms.

Phone and postcode rules are UK-specific: mobiles are ``07`` followed by
nine digits, spaces ignored.
"""

import re
from datetime import date
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MIN_AGE = 18
MIN_ADDRESS_LENGTH = 5
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
OTP_LENGTH = 6
UK_PHONE_LENGTH = 11

EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")
UK_PHONE_PATTERN = re.compile(r"07\d{9}", re.ASCII)
UK_POSTCODE_PATTERN = re.compile(r"[A-Z]{1,2}\d{1,2}[A-Z]?\s?\d[A-Z]{2}", re.ASCII)
PASSWORD_PATTERN = re.compile(r"(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d@$!%*#?&]{8,}", re.ASCII)
SPECIAL_CHARACTERS = set("@$!%*#?&")


class PasswordStrength(str, Enum):
    WEAK = "weak"
    FAIR = "fair"
    STRONG = "strong"
    VERY_STRONG = "very_strong"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value.strip()) is not None


def is_valid_name(value: str) -> bool:
    return MIN_NAME_LENGTH <= len(value.strip()) <= MAX_NAME_LENGTH


def is_valid_address(value: str) -> bool:
    return len(value.strip()) >= MIN_ADDRESS_LENGTH


def is_valid_uk_phone(value: str) -> bool:
    return UK_PHONE_PATTERN.fullmatch(value.replace(" ", "")) is not None


def format_uk_phone(value: str) -> str:
    """Format an 11-digit number as ``07XXX XXX XXX``; anything else is returned unspaced."""
    cleaned = value.replace(" ", "")
    if len(cleaned) != UK_PHONE_LENGTH:
        return cleaned
    return f"{cleaned[:5]} {cleaned[5:8]} {cleaned[8:]}"


def is_valid_uk_postcode(value: str) -> bool:
    return UK_POSTCODE_PATTERN.fullmatch(value.strip().upper()) is not None


def digits_only(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def is_valid_otp(code: str) -> bool:
    code = code.strip()
    return len(code) == OTP_LENGTH and code.isdigit()


def age_on(date_of_birth: date, today: Optional[date] = None) -> int:
    """Age in whole years."""
    return relativedelta(today or date.today(), date_of_birth).years


def is_adult(date_of_birth: date, today: Optional[date] = None) -> bool:
    return age_on(date_of_birth, today) >= MIN_AGE


def is_strong_password(value: str) -> bool:
    return (
        len(value) <= MAX_PASSWORD_LENGTH
        and PASSWORD_PATTERN.fullmatch(value) is not None
    )


def password_strength(value: str) -> PasswordStrength:
    if len(value) < 6:
        return PasswordStrength.WEAK
    if len(value) < MIN_PASSWORD_LENGTH or not is_strong_password(value):
        return PasswordStrength.FAIR
    if (
        len(value) >= 12
        and any(ch in SPECIAL_CHARACTERS for ch in value)
        and any(ch.isupper() for ch in value)
        and any(ch.islower() for ch in value)
    ):
        return PasswordStrength.VERY_STRONG
    return PasswordStrength.STRONG


def password_validation_message(value: str) -> Optional[str]:
    """The first rule a password breaks, or None if it is acceptable (or empty)."""
    if not value:
        return None
    if len(value) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not any(ch.isalpha() for ch in value):
        return "Password must contain at least one letter"
    if not any(ch.isdigit() for ch in value):
        return "Password must contain at least one number"
    return None
