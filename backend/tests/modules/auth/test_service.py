import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
from PIL import Image

from modules.auth.models import AuthChangeEvent, AuthSession, UserProfile, UserType
from modules.auth.service import (
    AuthenticationService,
    create_authentication_service,
    profile_image_path,
)
from modules.auth.exceptions import (
    EmailAlreadyExistsError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidDataError,
    NetworkError,
    UnknownAuthError,
    UploadFailedError,
    UserNotFoundError,
)
from modules.onboarding.models import SignupDraft

from tests.conftest import (
    TEST_USER_ID,
    FakeAPIError,
    make_auth_response,
    make_backend_session,
    make_profile_row,
    set_select_rows,
)


@pytest.fixture
def service(mock_client, settings):
    return AuthenticationService(client=mock_client, settings=settings)


class TestCheckEmailExists:
    @pytest.mark.asyncio
    async def test_existing_email(self, service, mock_client):
        """Should return True when a profile row uses the email."""
        set_select_rows(mock_client, [{"id": TEST_USER_ID}])
        assert await service.check_email_exists("a@b.com") is True
        mock_client.table.assert_called_with("profiles")
        mock_client.table.return_value.select.assert_called_with("id")

    @pytest.mark.asyncio
    async def test_unknown_email(self, service, mock_client):
        set_select_rows(mock_client, [])
        assert await service.check_email_exists("new@b.com") is False

    @pytest.mark.asyncio
    async def test_email_is_normalized(self, service, mock_client):
        """Lookup should be trimmed and lowercased."""
        await service.check_email_exists("  A@B.com ")
        mock_client.table.return_value.select.return_value.eq.assert_called_with(
            "email", "a@b.com"
        )

    @pytest.mark.asyncio
    async def test_any_failure_is_network_error(self, service, mock_client):
        """Backend failures should never leak their raw message."""
        mock_client.table.return_value.select.return_value.eq.return_value.execute.side_effect = (
            FakeAPIError("permission denied for table profiles", code="42501")
        )
        with pytest.raises(NetworkError):
            await service.check_email_exists("a@b.com")


class TestSignIn:
    @pytest.mark.asyncio
    async def test_success_returns_profile(self, service, mock_client):
        """Should authenticate then fetch the profile row."""
        profile = await service.sign_in("a@b.com", "Password1!")

        assert isinstance(profile, UserProfile)
        assert profile.id == TEST_USER_ID
        mock_client.auth.sign_in_with_password.assert_called_once_with(
            {"email": "a@b.com", "password": "Password1!"}
        )

    @pytest.mark.asyncio
    async def test_unconfirmed_email_never_reads_profile(self, service, mock_client):
        """The confirmation gate runs before any profile fetch."""
        mock_client.auth.sign_in_with_password.return_value = make_auth_response(confirmed=False)

        with pytest.raises(EmailNotVerifiedError):
            await service.sign_in("a@b.com", "Password1!")

        mock_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_login_credentials(self, service, mock_client):
        """Backend 'Invalid login credentials' maps to InvalidCredentialsError."""
        mock_client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await service.sign_in("a@b.com", "wrong")

        assert exc_info.value.error_description == "Invalid email or password. Please try again."
        mock_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_not_confirmed_message(self, service, mock_client):
        mock_client.auth.sign_in_with_password.side_effect = Exception("Email not confirmed")
        with pytest.raises(EmailNotVerifiedError):
            await service.sign_in("a@b.com", "Password1!")

    @pytest.mark.asyncio
    async def test_transport_failure(self, service, mock_client):
        mock_client.auth.sign_in_with_password.side_effect = httpx.ConnectError("boom")
        with pytest.raises(NetworkError):
            await service.sign_in("a@b.com", "Password1!")

    @pytest.mark.asyncio
    async def test_missing_profile_row(self, service, mock_client):
        set_select_rows(mock_client, [])
        with pytest.raises(UserNotFoundError) as exc_info:
            await service.sign_in("a@b.com", "Password1!")
        assert exc_info.value.details == {"user_id": TEST_USER_ID}

    @pytest.mark.asyncio
    async def test_duplicate_profile_rows(self, service, mock_client):
        """More than one row for an id is invalid data."""
        set_select_rows(mock_client, [make_profile_row(), make_profile_row()])
        with pytest.raises(InvalidDataError):
            await service.sign_in("a@b.com", "Password1!")

    @pytest.mark.asyncio
    async def test_unmatched_error_is_unknown(self, service, mock_client):
        cause = Exception("Database is on fire")
        mock_client.auth.sign_in_with_password.side_effect = cause
        with pytest.raises(UnknownAuthError) as exc_info:
            await service.sign_in("a@b.com", "Password1!")
        assert exc_info.value.cause is cause

    @pytest.mark.asyncio
    async def test_response_without_user(self, service, mock_client):
        mock_client.auth.sign_in_with_password.return_value = SimpleNamespace(user=None, session=None)
        with pytest.raises(InvalidDataError):
            await service.sign_in("a@b.com", "Password1!")


class TestSignUp:
    @pytest.mark.asyncio
    async def test_requests_account(self, service, mock_client):
        """Should call sign_up without touching the profiles table."""
        await service.sign_up("a@b.com", "Password1!")

        mock_client.auth.sign_up.assert_called_once_with(
            {"email": "a@b.com", "password": "Password1!"}
        )
        mock_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_sends_draft_metadata(self, service, mock_client):
        draft = SignupDraft(email="a@b.com", full_name="Ada Lovelace", user_type=UserType.LANDLORD)
        await service.sign_up("a@b.com", "Password1!", draft)

        credentials = mock_client.auth.sign_up.call_args.args[0]
        assert credentials["options"] == {
            "data": {"full_name": "Ada Lovelace", "user_type": "landlord"}
        }

    @pytest.mark.asyncio
    async def test_already_registered(self, service, mock_client):
        mock_client.auth.sign_up.side_effect = Exception("User already registered")
        with pytest.raises(EmailAlreadyExistsError):
            await service.sign_up("a@b.com", "Password1!")

    @pytest.mark.asyncio
    async def test_network_phrase(self, service, mock_client):
        mock_client.auth.sign_up.side_effect = Exception("Network request failed")
        with pytest.raises(NetworkError):
            await service.sign_up("a@b.com", "Password1!")


class TestVerifyOtp:
    @pytest.mark.asyncio
    async def test_provisions_profile(self, service, mock_client):
        """Should verify the code, insert a minimal row and return the profile."""
        profile = await service.verify_otp("a@b.com", "123456")

        mock_client.auth.verify_otp.assert_called_once_with(
            {"email": "a@b.com", "token": "123456", "type": "signup"}
        )
        row = mock_client.table.return_value.insert.call_args.args[0]
        assert row["id"] == TEST_USER_ID
        assert row["email"] == "a@b.com"
        assert row["user_type"] == "tenant"
        assert "created_at" in row
        assert profile.id == TEST_USER_ID

    @pytest.mark.asyncio
    async def test_mixed_case_email_is_found_again(self, service, mock_client):
        """The stored email matches what a later lookup of the same input queries."""
        await service.verify_otp(" Alice@Example.com ", "123456")
        stored = mock_client.table.return_value.insert.call_args.args[0]["email"]

        await service.check_email_exists("Alice@Example.com")
        queried = mock_client.table.return_value.select.return_value.eq.call_args_list[-1]

        assert stored == "alice@example.com"
        assert queried.args == ("email", stored)

    @pytest.mark.asyncio
    async def test_repeat_verification_keeps_existing_row(self, service, mock_client):
        """A duplicate-key conflict on insert is not an error."""
        mock_client.table.return_value.insert.return_value.execute.side_effect = FakeAPIError(
            'duplicate key value violates unique constraint "profiles_pkey"', code="23505"
        )
        profile = await service.verify_otp("a@b.com", "123456")
        assert profile.id == TEST_USER_ID

    @pytest.mark.asyncio
    async def test_other_insert_failure_propagates(self, service, mock_client):
        mock_client.table.return_value.insert.return_value.execute.side_effect = FakeAPIError(
            "connection reset by peer"
        )
        with pytest.raises(NetworkError):
            await service.verify_otp("a@b.com", "123456")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["Token has expired or is invalid", "Invalid OTP"])
    async def test_bad_code(self, service, mock_client, message):
        mock_client.auth.verify_otp.side_effect = Exception(message)
        with pytest.raises(InvalidCredentialsError):
            await service.verify_otp("a@b.com", "000000")
        mock_client.table.assert_not_called()


class TestUploadProfileImage:
    @pytest.mark.asyncio
    async def test_uploads_and_updates_profile(self, service, mock_client):
        """Should store the JPEG at {user_id}/profile.jpg and save the URL."""
        payload = b"\xff\xd8" + b"x" * 100
        url = await service.upload_profile_image(TEST_USER_ID, payload)

        mock_client.storage.from_.assert_called_once_with("avatars")
        bucket = mock_client.storage.from_.return_value
        bucket.upload.assert_called_once_with(
            f"{TEST_USER_ID}/profile.jpg",
            payload,
            file_options={"content-type": "image/jpeg", "upsert": "true"},
        )
        assert url == bucket.get_public_url.return_value
        mock_client.table.return_value.update.assert_called_once_with({"profile_image_url": url})

    @pytest.mark.asyncio
    async def test_payload_at_limit_is_accepted(self, service, mock_client):
        await service.upload_profile_image(TEST_USER_ID, b"x" * 1_048_576)
        mock_client.storage.from_.return_value.upload.assert_called_once()

    @pytest.mark.asyncio
    async def test_oversized_payload_rejected_before_network(self, service, mock_client):
        """One byte over the ceiling fails without any storage call."""
        with pytest.raises(UploadFailedError):
            await service.upload_profile_image(TEST_USER_ID, b"x" * 1_048_577)

        mock_client.storage.from_.assert_not_called()
        mock_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_encodes_pillow_image(self, service, mock_client):
        image = Image.new("RGBA", (16, 16), (255, 0, 0, 128))
        await service.upload_profile_image(TEST_USER_ID, image)

        uploaded = mock_client.storage.from_.return_value.upload.call_args.args[1]
        assert uploaded.startswith(b"\xff\xd8")

    @pytest.mark.asyncio
    async def test_unsupported_payload(self, service, mock_client):
        with pytest.raises(UploadFailedError):
            await service.upload_profile_image(TEST_USER_ID, "not an image")
        mock_client.storage.from_.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_failure(self, service, mock_client):
        mock_client.storage.from_.return_value.upload.side_effect = Exception("Bucket not found")
        with pytest.raises(UploadFailedError):
            await service.upload_profile_image(TEST_USER_ID, b"jpeg")
        mock_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_network_failure(self, service, mock_client):
        mock_client.storage.from_.return_value.upload.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(NetworkError):
            await service.upload_profile_image(TEST_USER_ID, b"jpeg")

    @pytest.mark.asyncio
    async def test_profile_update_failure_after_upload(self, service, mock_client):
        """The stored object is kept; the caller still sees a failure."""
        mock_client.table.return_value.update.return_value.eq.return_value.execute.side_effect = (
            FakeAPIError("row level security violation")
        )
        with pytest.raises(UploadFailedError):
            await service.upload_profile_image(TEST_USER_ID, b"jpeg")

        mock_client.storage.from_.return_value.upload.assert_called_once()
        mock_client.storage.from_.return_value.remove.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_row_after_upload_is_upload_failure(self, service, mock_client):
        """A row echoed back that fails validation is still an upload failure."""
        mock_client.table.return_value.update.return_value.eq.return_value.execute.return_value = (
            MagicMock(data=[make_profile_row(email="not-an-email")])
        )
        with pytest.raises(UploadFailedError):
            await service.upload_profile_image(TEST_USER_ID, b"x" * 10)

    @pytest.mark.asyncio
    async def test_profile_update_network_failure_after_upload(self, service, mock_client):
        mock_client.table.return_value.update.return_value.eq.return_value.execute.side_effect = (
            httpx.ConnectError("offline")
        )
        with pytest.raises(NetworkError):
            await service.upload_profile_image(TEST_USER_ID, b"jpeg")

    def test_profile_image_path(self):
        assert profile_image_path("abc") == "abc/profile.jpg"


class TestProfiles:
    @pytest.mark.asyncio
    async def test_fetch_profile(self, service):
        profile = await service.fetch_profile(TEST_USER_ID)
        assert profile.email == "a@b.com"

    @pytest.mark.asyncio
    async def test_fetch_missing_profile(self, service, mock_client):
        set_select_rows(mock_client, [])
        with pytest.raises(UserNotFoundError):
            await service.fetch_profile(TEST_USER_ID)

    @pytest.mark.asyncio
    async def test_update_profile_serializes_columns(self, service, mock_client):
        from datetime import date

        mock_client.table.return_value.update.return_value.eq.return_value.execute.return_value = (
            MagicMock(data=[make_profile_row(full_name="Ada", user_type="landlord")])
        )
        profile = await service.update_profile(
            TEST_USER_ID,
            {"full_name": "Ada", "date_of_birth": date(1990, 1, 2), "user_type": UserType.LANDLORD},
        )

        mock_client.table.return_value.update.assert_called_once_with(
            {"full_name": "Ada", "date_of_birth": "1990-01-02", "user_type": "landlord"}
        )
        assert profile.user_type is UserType.LANDLORD

    @pytest.mark.asyncio
    async def test_update_profile_rejects_identity_columns(self, service, mock_client):
        with pytest.raises(InvalidDataError):
            await service.update_profile(TEST_USER_ID, {"email": "new@b.com"})
        mock_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_profile_rejects_empty(self, service):
        with pytest.raises(InvalidDataError):
            await service.update_profile(TEST_USER_ID, {})

    @pytest.mark.asyncio
    async def test_update_without_echo_refetches(self, service, mock_client):
        mock_client.table.return_value.update.return_value.eq.return_value.execute.return_value = (
            MagicMock(data=[])
        )
        profile = await service.update_profile(TEST_USER_ID, {"address": "1 High Street"})
        assert profile.id == TEST_USER_ID


class TestSessions:
    @pytest.mark.asyncio
    async def test_current_session(self, service):
        session = await service.current_session()
        assert isinstance(session, AuthSession)
        assert session.user_id == TEST_USER_ID

    @pytest.mark.asyncio
    async def test_no_session(self, service, mock_client):
        mock_client.auth.get_session.return_value = None
        assert await service.current_session() is None
        assert await service.current_user_id() is None

    @pytest.mark.asyncio
    async def test_current_user_id(self, service):
        assert await service.current_user_id() == TEST_USER_ID

    @pytest.mark.asyncio
    async def test_sign_out(self, service, mock_client):
        await service.sign_out()
        mock_client.auth.sign_out.assert_called_once()

    @pytest.mark.asyncio
    async def test_sign_out_failure(self, service, mock_client):
        mock_client.auth.sign_out.side_effect = Exception("Invalid login credentials")
        with pytest.raises(UnknownAuthError):
            await service.sign_out()


class TestSubscribe:
    def test_forwards_parsed_events(self, service, mock_client):
        """Raw backend events are converted before reaching the callback."""
        received = []
        subscription = service.subscribe(lambda event, session: received.append((event, session)))

        forward = mock_client.auth.on_auth_state_change.call_args.args[0]
        forward("SIGNED_IN", make_backend_session())
        forward("SIGNED_OUT", None)

        assert subscription is mock_client.auth.on_auth_state_change.return_value
        assert received[0][0] is AuthChangeEvent.SIGNED_IN
        assert received[0][1].user_id == TEST_USER_ID
        assert received[1] == (AuthChangeEvent.SIGNED_OUT, None)


class TestFactory:
    def test_create_uses_shared_client(self, mock_client, settings, monkeypatch):
        monkeypatch.setattr("modules.auth.service.get_supabase_client", lambda: mock_client)
        service = create_authentication_service(settings=settings)
        assert service._client is mock_client
