"""
Authentication service implementation.

Mediates between the app and Supabase Auth, the profiles table and the
avatars storage bucket. Every failure leaving this module is translated
into the auth error taxonomy.

The Supabase client is synchronous, so each call runs in a worker thread
and the event loop never blocks. Calls that change the client's own session
bookkeeping (sign in, sign up, verify, sign out) are serialized by a single
lock; table and storage calls are not.
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional
from uuid import UUID

from supabase import Client

from shared.config import Settings, get_settings
from shared.database import get_supabase_client

from .error_mapping import (
    NETWORK_ONLY_RULES,
    SIGN_IN_RULES,
    SIGN_UP_RULES,
    VERIFY_OTP_RULES,
    map_backend_error,
    map_upload_error,
)
from .exceptions import (
    AuthError,
    EmailNotVerifiedError,
    InvalidDataError,
    NetworkError,
    UnknownAuthError,
    UploadFailedError,
    UserNotFoundError,
)
from .images import JPEG_CONTENT_TYPE, to_jpeg_bytes
from .interfaces import AuthChangeCallback, AuthSubscription, IAuthService
from .models import AuthChangeEvent, AuthSession, NewProfile, UserProfile
from .repository import ProfileRepository

if TYPE_CHECKING:
    from modules.onboarding.models import SignupDraft

logger = logging.getLogger(__name__)

# Columns a client may change through update_profile
EDITABLE_PROFILE_FIELDS = frozenset({
    "full_name",
    "date_of_birth",
    "phone_number",
    "address",
    "profile_image_url",
    "user_type",
})


def normalize_email(email: str) -> str:
    """Profiles store emails trimmed and lower-cased; lookups must match."""
    return email.strip().lower()


def profile_image_path(user_id: str | UUID) -> str:
    """Storage path for a user's photo. Re-uploads overwrite it."""
    return f"{user_id}/profile.jpg"


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class AuthenticationService(IAuthService):
    """
    Implementation of the authentication service.

    Uses Supabase Auth for identities and sessions, the profiles table for
    user data and Supabase Storage for profile photos.
    """

    def __init__(
        self,
        client: Client,
        settings: Optional[Settings] = None,
        profiles: Optional[ProfileRepository] = None,
    ):
        self._settings = settings or get_settings()
        self._client = client
        self._profiles = profiles or ProfileRepository(client, self._settings.profiles_table)
        self._auth_lock = asyncio.Lock()

    async def check_email_exists(self, email: str) -> bool:
        """
        Check whether a profile already uses this email.

        Any failure is reported as NetworkError; the backend's message is
        logged but never surfaced.
        """
        try:
            return await asyncio.to_thread(self._profiles.email_exists, normalize_email(email))
        except Exception as e:
            logger.warning(f"Email lookup failed: {type(e).__name__}: {e}")
            raise NetworkError() from e

    async def sign_in(self, email: str, password: str) -> UserProfile:
        """
        Sign in and return the user's profile.

        The confirmation gate runs before any profile read, so an unconfirmed
        identity never sees profile data.
        """
        try:
            async with self._auth_lock:
                response = await asyncio.to_thread(
                    self._client.auth.sign_in_with_password,
                    {"email": email.strip(), "password": password},
                )
            session = self._session_from_response(response)
            if not session.is_email_confirmed:
                raise EmailNotVerifiedError()
            return await self._require_profile(session.user_id)
        except AuthError:
            raise
        except Exception as e:
            raise map_backend_error(e, SIGN_IN_RULES) from e

    async def sign_up(
        self,
        email: str,
        password: str,
        draft: Optional["SignupDraft"] = None,
    ) -> None:
        """
        Request account creation. Supabase emails the verification code.

        No profile row is written here: without a session, Row Level Security
        rejects the insert. The row is provisioned by verify_otp.
        """
        credentials: dict[str, Any] = {"email": email.strip(), "password": password}
        if draft is not None:
            credentials["options"] = {"data": draft.to_user_metadata()}

        try:
            async with self._auth_lock:
                await asyncio.to_thread(self._client.auth.sign_up, credentials)
        except AuthError:
            raise
        except Exception as e:
            raise map_backend_error(e, SIGN_UP_RULES) from e

        logger.info("Sign-up requested, verification code sent")

    async def verify_otp(self, email: str, code: str) -> UserProfile:
        """
        Verify a sign-up code, provision the profile row and return it.

        Safe to repeat: a row that already exists is left untouched.
        """
        email = normalize_email(email)
        try:
            async with self._auth_lock:
                response = await asyncio.to_thread(
                    self._client.auth.verify_otp,
                    {"email": email, "token": code.strip(), "type": "signup"},
                )
            session = self._session_from_response(response)

            new_profile = NewProfile(
                id=session.user_id,
                email=email,
                created_at=datetime.now(timezone.utc),
            )
            created = await asyncio.to_thread(self._profiles.insert_if_absent, new_profile)
            if created:
                logger.info(f"Provisioned profile for user {session.user_id}")

            return await self._require_profile(session.user_id)
        except AuthError:
            raise
        except Exception as e:
            raise map_backend_error(e, VERIFY_OTP_RULES) from e

    async def upload_profile_image(self, user_id: str | UUID, image: Any) -> str:
        """
        Upload a profile photo and point the profile row at it.

        Args:
            user_id: Owner of the photo
            image: JPEG bytes, or a Pillow image to encode

        Returns:
            Public URL of the stored photo

        The size ceiling is enforced before any network call. If the row
        update fails after the upload succeeded, the stored object is kept.
        """
        user_id = str(user_id)
        limit = self._settings.max_profile_image_bytes

        try:
            payload = to_jpeg_bytes(image, self._settings.profile_image_quality)
        except (TypeError, ValueError, OSError) as e:
            raise UploadFailedError(details={"reason": str(e)}) from e

        if len(payload) > limit:
            raise UploadFailedError(details={"size": len(payload), "limit": limit})

        path = profile_image_path(user_id)
        try:
            bucket = self._client.storage.from_(self._settings.avatars_bucket)
            await asyncio.to_thread(
                bucket.upload,
                path,
                payload,
                file_options={"content-type": JPEG_CONTENT_TYPE, "upsert": "true"},
            )
            public_url = str(bucket.get_public_url(path))
        except Exception as e:
            raise map_upload_error(e) from e

        try:
            await asyncio.to_thread(
                self._profiles.update, user_id, {"profile_image_url": public_url}
            )
        except NetworkError:
            logger.warning(f"Stored {path} but could not reach profile {user_id}")
            raise
        except AuthError as e:
            logger.warning(f"Stored {path} but profile {user_id} update failed: {e.code}")
            raise UploadFailedError(details={"reason": e.code}) from e
        except Exception as e:
            logger.warning(
                f"Stored {path} but could not update profile {user_id}: {e}"
            )
            raise map_upload_error(e) from e

        return public_url

    async def fetch_profile(self, user_id: str | UUID) -> UserProfile:
        """Fetch exactly one profile row; a missing row is UserNotFoundError."""
        try:
            return await self._require_profile(str(user_id))
        except AuthError:
            raise
        except Exception as e:
            raise map_backend_error(e, SIGN_IN_RULES) from e

    async def update_profile(
        self,
        user_id: str | UUID,
        fields: Mapping[str, Any],
    ) -> UserProfile:
        """
        Apply a partial update to a profile row.

        Only editable columns are accepted; identity columns (id, email,
        created_at) cannot be changed here.
        """
        user_id = str(user_id)
        unknown = set(fields) - EDITABLE_PROFILE_FIELDS
        if not fields or unknown:
            raise InvalidDataError(details={"fields": sorted(unknown)} if unknown else None)

        row = {key: _to_column(value) for key, value in fields.items()}
        try:
            updated = await asyncio.to_thread(self._profiles.update, user_id, row)
            if updated is None:
                updated = await self._require_profile(user_id)
            return updated
        except AuthError:
            raise
        except Exception as e:
            raise map_backend_error(e, NETWORK_ONLY_RULES) from e

    async def sign_out(self) -> None:
        """End the session at the backend. Any failure is UnknownAuthError."""
        try:
            async with self._auth_lock:
                await asyncio.to_thread(self._client.auth.sign_out)
        except Exception as e:
            raise UnknownAuthError(e) from e

    async def current_session(self) -> Optional[AuthSession]:
        """
        Read the client's cached session.

        The Supabase client may refresh an expired access token while doing
        this; that refresh is its own business.
        """
        try:
            session = await asyncio.to_thread(self._client.auth.get_session)
        except Exception as e:
            raise map_backend_error(e, NETWORK_ONLY_RULES) from e
        if session is None or getattr(session, "user", None) is None:
            return None
        return AuthSession.from_backend(session)

    async def current_user_id(self) -> Optional[str]:
        """Like current_session, this may let the client refresh an expired token."""
        session = await self.current_session()
        return session.user_id if session else None

    def subscribe(self, callback: AuthChangeCallback) -> AuthSubscription:
        """
        Listen to Supabase auth state changes.

        The callback runs on whichever thread the Supabase client emits from,
        usually a worker thread of this service. Callers must marshal back to
        their own loop.
        """

        def _forward(event: Any, session: Any) -> None:
            snapshot: Optional[AuthSession] = None
            if session is not None and getattr(session, "user", None) is not None:
                snapshot = AuthSession.from_backend(session)
            callback(AuthChangeEvent.parse(event), snapshot)

        return self._client.auth.on_auth_state_change(_forward)

    async def _require_profile(self, user_id: str) -> UserProfile:
        profile = await asyncio.to_thread(self._profiles.get_by_id, user_id)
        if profile is None:
            raise UserNotFoundError(user_id)
        return profile

    @staticmethod
    def _session_from_response(response: Any) -> AuthSession:
        user = getattr(response, "user", None)
        session = getattr(response, "session", None)
        if user is None and session is None:
            raise InvalidDataError()
        try:
            return AuthSession.from_backend(session, user)
        except ValueError as e:
            raise InvalidDataError() from e


def create_authentication_service(
    settings: Optional[Settings] = None,
    client: Optional[Client] = None,
) -> AuthenticationService:
    """Build a service against the configured Supabase project."""
    return AuthenticationService(
        client=client or get_supabase_client(),
        settings=settings,
    )
