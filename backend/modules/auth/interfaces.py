"""
Authentication module interface.

Other modules should depend on IAuthService, not the concrete implementation.
This enables testing with mocks and swapping the backend later.
"""

from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable

from .models import AuthChangeEvent, AuthSession, UserProfile

AuthChangeCallback = Callable[[AuthChangeEvent, Optional[AuthSession]], None]


@runtime_checkable
class AuthSubscription(Protocol):
    """Handle returned when listening to backend auth changes."""

    def unsubscribe(self) -> None:
        ...


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    Every error raised by an implementation must be a member of the
    auth error taxonomy in ``modules.auth.exceptions``.
    """

    async def check_email_exists(self, email: str) -> bool:
        """
        Check whether a profile already uses this email.

        Raises:
            NetworkError: If the lookup could not be completed
        """
        ...

    async def sign_in(self, email: str, password: str) -> UserProfile:
        """
        Sign in with email and password and return the user's profile.

        Raises:
            EmailNotVerifiedError: If the identity has not confirmed its email
            InvalidCredentialsError: If the email/password pair is wrong
            UserNotFoundError: If no profile row exists for the identity
        """
        ...

    async def sign_up(self, email: str, password: str, draft: Any = None) -> None:
        """
        Create the identity. No profile row is written until verification.

        Raises:
            EmailAlreadyExistsError: If the email is already registered
        """
        ...

    async def verify_otp(self, email: str, code: str) -> UserProfile:
        """
        Confirm a sign-up with the emailed code, provisioning the profile row.

        Raises:
            InvalidCredentialsError: If the code is wrong or expired
        """
        ...

    async def upload_profile_image(self, user_id: str, image: Any) -> str:
        """
        Store a profile photo and return its public URL.

        Raises:
            UploadFailedError: If the payload is too large or storage fails
        """
        ...

    async def fetch_profile(self, user_id: str) -> UserProfile:
        """Fetch exactly one profile row."""
        ...

    async def update_profile(self, user_id: str, fields: Mapping[str, Any]) -> UserProfile:
        """Apply a partial update to a profile row."""
        ...

    async def sign_out(self) -> None:
        """End the backend session."""
        ...

    async def current_session(self) -> Optional[AuthSession]:
        """Return the backend client's current session, if any."""
        ...

    async def current_user_id(self) -> Optional[str]:
        """Return the signed-in user's ID, if any."""
        ...

    def subscribe(self, callback: AuthChangeCallback) -> AuthSubscription:
        """Listen to backend auth state changes."""
        ...
