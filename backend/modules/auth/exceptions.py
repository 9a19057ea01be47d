"""
Authentication module exceptions.

This is a closed set: every error that leaves AuthenticationService is one
of the classes below. Each carries a stable code and a user-facing
``error_description`` that the UI renders as-is.
"""

from shared.exceptions import AuthenticationError


class AuthError(AuthenticationError):
    """Base class for the auth error taxonomy."""

    code_name = "AUTH_ERROR"
    error_description = "An authentication error occurred."

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(
            message or self.error_description,
            code=self.code_name,
            details=details,
        )


class EmailAlreadyExistsError(AuthError):
    """Raised when signing up with an email that already has an account."""

    code_name = "EMAIL_ALREADY_EXISTS"
    error_description = "This email is already registered. Please sign in instead."


class InvalidCredentialsError(AuthError):
    """Raised for a wrong email/password pair or a bad OTP code."""

    code_name = "INVALID_CREDENTIALS"
    error_description = "Invalid email or password. Please try again."


class EmailNotVerifiedError(AuthError):
    """Raised when the identity has not confirmed its email yet."""

    code_name = "EMAIL_NOT_VERIFIED"
    error_description = "Please verify your email before signing in."


class UserNotFoundError(AuthError):
    """Raised when the authenticated user has no profile row."""

    code_name = "USER_NOT_FOUND"
    error_description = "User profile not found. Please contact support."

    def __init__(self, user_id: str | None = None):
        super().__init__(details={"user_id": user_id} if user_id else None)


class NetworkError(AuthError):
    """Raised when a backend could not be reached."""

    code_name = "NETWORK_ERROR"
    error_description = "Network connection error. Please check your internet connection."


class InvalidDataError(AuthError):
    """Raised when input or backend data is malformed."""

    code_name = "INVALID_DATA"
    error_description = "Invalid data received. Please try again."


class UploadFailedError(AuthError):
    """Raised when a profile image could not be stored."""

    code_name = "UPLOAD_FAILED"
    error_description = "Failed to upload profile image. Please try again."


class UnknownAuthError(AuthError):
    """Wraps any backend failure that matches no other member."""

    code_name = "UNKNOWN"

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"An error occurred: {cause}")
        self.__cause__ = cause

    @property
    def error_description(self) -> str:  # type: ignore[override]
        return f"An error occurred: {self.cause}"
