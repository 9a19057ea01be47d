"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field


class UserType(str, Enum):
    """Which side of the marketplace a user is on."""

    TENANT = "tenant"
    LANDLORD = "landlord"


class AuthChangeEvent(str, Enum):
    """
    Auth state change events pushed by the credential backend.

    Values match the event names Supabase Auth emits. Anything the app does
    not react to is folded into OTHER.
    """

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Any) -> "AuthChangeEvent":
        """Map a raw backend event name onto a member, OTHER if unknown."""
        raw = getattr(value, "value", value)
        try:
            return cls(str(raw).upper())
        except ValueError:
            return cls.OTHER


class UserProfile(BaseModel):
    """
    The durable per-user record stored in the profiles table.

    Distinct from credential/session data, which the auth backend owns.
    """

    id: str = Field(..., description="User ID (UUID from Supabase Auth)")
    email: EmailStr = Field(..., description="Email address")
    full_name: Optional[str] = Field(None, description="Full name")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    phone_number: Optional[str] = Field(None, description="Phone number, digits only")
    address: Optional[str] = Field(None, description="Free-text address")
    profile_image_url: Optional[str] = Field(None, description="Public avatar URL")
    user_type: UserType = Field(default=UserType.TENANT, description="Tenant or landlord")
    created_at: Optional[datetime] = Field(None, description="Profile creation time")

    model_config = {"extra": "ignore"}


class NewProfile(BaseModel):
    """Minimal row inserted when a verified user first gets a session."""

    id: str
    email: str
    user_type: UserType = UserType.TENANT
    created_at: datetime

    def to_row(self) -> dict[str, Any]:
        """Serialize for a PostgREST insert."""
        return self.model_dump(mode="json")


class AuthSession(BaseModel):
    """
    Snapshot of the backend's current session.

    The app never persists these tokens; it only reads them back from the
    Supabase client when it needs to know who is signed in.
    """

    user_id: str = Field(..., description="Authenticated user ID")
    email: Optional[str] = Field(None, description="Email on the identity")
    email_confirmed_at: Optional[datetime] = Field(
        None, description="When the email was confirmed, None if pending"
    )
    access_token: str = Field(default="", description="JWT access token")
    refresh_token: str = Field(default="", description="Refresh token")
    expires_at: Optional[int] = Field(None, description="Access token expiry (epoch seconds)")

    model_config = {"frozen": True}

    @property
    def is_email_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

    @classmethod
    def from_backend(cls, session: Any, user: Any = None) -> "AuthSession":
        """
        Build from a Supabase Auth session object.

        Args:
            session: gotrue Session (may be None when only a user is returned)
            user: gotrue User, used when the session does not carry one
        """
        user = user if user is not None else getattr(session, "user", None)
        if user is None:
            raise ValueError("Backend session has no user")
        return cls(
            user_id=str(user.id),
            email=getattr(user, "email", None),
            email_confirmed_at=getattr(user, "email_confirmed_at", None),
            access_token=getattr(session, "access_token", "") or "",
            refresh_token=getattr(session, "refresh_token", "") or "",
            expires_at=getattr(session, "expires_at", None),
        )
