"""
Onboarding flow controller.

Drives the welcome, sign-in, sign-up and verification screens against the
auth service. Screens read the public attributes (``email_exists``,
``is_loading``, ``error_message``...) and call the coroutines; errors are
turned into display strings here and never raised to the screen.

Sign-up is two-phase. submit_signup() creates the identity; the profile row
only exists after verify() succeeds, at which point the draft's details and
optional photo are written and the draft is discarded.
"""

import logging
from typing import Optional

from modules.auth.exceptions import AuthError
from modules.auth.interfaces import IAuthService
from modules.auth.models import UserProfile
from modules.session.state import AppState

from .models import SignupDraft
from .validation import is_valid_email, is_valid_otp, password_validation_message

logger = logging.getLogger(__name__)


class OnboardingFlow:
    """State and actions behind the onboarding screens."""

    def __init__(self, auth_service: IAuthService, app_state: AppState):
        self._auth = auth_service
        self._app_state = app_state
        self.draft = SignupDraft()
        self._reset_flags()

    def _reset_flags(self) -> None:
        self.email_exists = False
        self.show_password = False
        self.is_checking_email = False
        self.is_loading = False
        self.awaiting_verification = False
        self.error_message: Optional[str] = None

    @property
    def email(self) -> str:
        return self.draft.email.strip()

    async def check_email(self) -> bool:
        """Look up the entered email to choose between sign-in and sign-up."""
        if not is_valid_email(self.email):
            return self._fail("Please enter a valid email address")

        self.is_checking_email = True
        self.error_message = None
        try:
            self.email_exists = await self._auth.check_email_exists(self.email)
            self.show_password = True
            return True
        except AuthError:
            return self._fail("Failed to check email. Please try again.")
        finally:
            self.is_checking_email = False

    async def sign_in(self, password: str) -> Optional[UserProfile]:
        if not is_valid_email(self.email):
            self._fail("Please enter a valid email address")
            return None
        if not password:
            self._fail("Please enter your password")
            return None

        self.is_loading = True
        self.error_message = None
        try:
            profile = await self._auth.sign_in(self.email, password)
        except AuthError as e:
            self._fail(e.error_description)
            return None
        finally:
            self.is_loading = False

        self._app_state.update_user(profile)
        return profile

    def prepare_for_sign_up(self) -> None:
        self.show_password = False

    async def submit_signup(self, password: str) -> bool:
        """Validate the draft and create the identity; a code is emailed on success."""
        if not is_valid_email(self.email):
            return self._fail("Please enter a valid email address")
        problem = password_validation_message(password) if password else "Please enter a password"
        if problem:
            return self._fail(problem)
        step = self.draft.first_invalid_step()
        if step is not None:
            return self._fail(f"Please complete the {step.value.replace('_', ' ')} step")

        self.draft.password = password
        self.is_loading = True
        self.error_message = None
        try:
            await self._auth.sign_up(self.email, password, self.draft)
        except AuthError as e:
            return self._fail(e.error_description)
        finally:
            self.is_loading = False

        self.awaiting_verification = True
        return True

    async def verify(self, code: str) -> bool:
        """Confirm the emailed code, sign the user in and finish their profile."""
        if not is_valid_otp(code):
            return self._fail("Please enter a valid 6-digit code")

        self.is_loading = True
        self.error_message = None
        try:
            profile = await self._auth.verify_otp(self.email, code)
            self._app_state.update_user(profile)
            if self.awaiting_verification:
                await self.complete_profile(profile)
        except AuthError:
            return self._fail("Invalid verification code. Please try again.")
        finally:
            self.is_loading = False

        self.draft = SignupDraft()
        self.awaiting_verification = False
        return True

    async def complete_profile(self, profile: UserProfile) -> UserProfile:
        """
        Write the draft's details and photo to the freshly provisioned profile.

        The account is already usable at this point, so failures are logged
        and the user keeps the minimal profile.
        """
        try:
            profile = await self._auth.update_profile(profile.id, self.draft.to_profile_fields())
        except AuthError as e:
            logger.warning(f"Could not save profile details for {profile.id}: {e.code}")

        if self.draft.profile_image:
            try:
                url = await self._auth.upload_profile_image(profile.id, self.draft.profile_image)
                profile = profile.model_copy(update={"profile_image_url": url})
            except AuthError as e:
                logger.warning(f"Could not upload profile image for {profile.id}: {e.code}")

        self._app_state.update_user(profile)
        return profile

    def reset(self) -> None:
        """Abandon the flow and drop the draft."""
        self.draft = SignupDraft()
        self._reset_flags()

    def _fail(self, message: str) -> bool:
        self.error_message = message
        return False
