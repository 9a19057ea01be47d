"""
Onboarding module data models.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field, SecretStr

from modules.auth.models import UserProfile, UserType

from .validation import (
    MIN_AGE,
    digits_only,
    format_uk_phone,
    is_adult,
    is_valid_address,
    is_valid_name,
    is_valid_uk_phone,
)


class SignupStep(str, Enum):
    """Steps of the sign-up form, in the order they are shown."""

    NAME = "name"
    DATE_OF_BIRTH = "date_of_birth"
    PHONE = "phone"
    ADDRESS = "address"
    PHOTO = "photo"


def _default_date_of_birth() -> date:
    return date.today() - relativedelta(years=MIN_AGE)


class SignupDraft(BaseModel):
    """
    Everything the sign-up form has collected so far.

    Lives in memory only. The password is held as a secret for the length of
    the flow and is never part of any payload written to a store.
    """

    email: str = ""
    password: SecretStr = SecretStr("")
    full_name: str = ""
    date_of_birth: date = Field(default_factory=_default_date_of_birth)
    phone_number: str = ""
    address: str = ""
    profile_image: Optional[bytes] = Field(default=None, repr=False)
    user_type: UserType = UserType.TENANT

    model_config = {"validate_assignment": True}

    @property
    def is_name_valid(self) -> bool:
        return is_valid_name(self.full_name)

    @property
    def is_dob_valid(self) -> bool:
        return is_adult(self.date_of_birth)

    @property
    def is_phone_valid(self) -> bool:
        return is_valid_uk_phone(self.phone_number)

    @property
    def is_address_valid(self) -> bool:
        return is_valid_address(self.address)

    @property
    def is_photo_valid(self) -> bool:
        # The photo step is optional
        return True

    @property
    def formatted_phone_number(self) -> str:
        return format_uk_phone(self.phone_number)

    def is_step_valid(self, step: SignupStep) -> bool:
        checks = {
            SignupStep.NAME: self.is_name_valid,
            SignupStep.DATE_OF_BIRTH: self.is_dob_valid,
            SignupStep.PHONE: self.is_phone_valid,
            SignupStep.ADDRESS: self.is_address_valid,
            SignupStep.PHOTO: self.is_photo_valid,
        }
        return checks[step]

    def first_invalid_step(self) -> Optional[SignupStep]:
        for step in SignupStep:
            if not self.is_step_valid(step):
                return step
        return None

    def to_user_metadata(self) -> dict[str, Any]:
        """Non-sensitive fields attached to the identity at sign-up."""
        return {
            "full_name": self.full_name.strip(),
            "user_type": self.user_type.value,
        }

    def to_profile_fields(self) -> dict[str, Any]:
        """Columns written to the profile row once the account is verified."""
        return {
            "full_name": self.full_name.strip(),
            "date_of_birth": self.date_of_birth,
            "phone_number": digits_only(self.phone_number),
            "address": self.address.strip(),
            "user_type": self.user_type,
        }

    def to_profile(self, user_id: str, created_at: Optional[datetime] = None) -> UserProfile:
        """Shape the draft as a profile; the image URL is filled in after upload."""
        return UserProfile(
            id=user_id,
            email=self.email.strip(),
            profile_image_url=None,
            created_at=created_at or datetime.now(timezone.utc),
            **self.to_profile_fields(),
        )
