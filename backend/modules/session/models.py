"""
Session module data models.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from modules.auth.models import UserProfile


class AppFlow(str, Enum):
    """The coarse UI mode derived from authentication state."""

    ONBOARDING = "onboarding"
    MAIN = "main"


class AppStateSnapshot(BaseModel):
    """Immutable view of who is signed in, handed to state observers."""

    current_user: Optional[UserProfile] = Field(None, description="Signed-in user's profile")
    is_authenticated: bool = Field(default=False, description="Whether a user is signed in")
    is_loading: bool = Field(default=True, description="Whether a restore is in flight")

    model_config = {"frozen": True}

    @property
    def flow(self) -> AppFlow:
        return AppFlow.MAIN if self.is_authenticated else AppFlow.ONBOARDING


class AuthCallback(BaseModel):
    """Parameters of an auth callback deep link."""

    type: Optional[str] = Field(None, description="Callback type, e.g. signup or magiclink")
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def restores_session(self) -> bool:
        return self.type in ("signup", "magiclink")
