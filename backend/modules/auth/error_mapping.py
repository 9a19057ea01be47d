"""
Translation of raw backend failures into the auth error taxonomy.

Supabase surfaces most failures as message strings, so classification is a
case-insensitive substring match against per-operation phrase tables. Rules
are checked in order and the first match wins. This module is the only
place in the app that looks at raw backend error text.
"""

from typing import Sequence

import httpx

from .exceptions import (
    AuthError,
    EmailAlreadyExistsError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    NetworkError,
    UnknownAuthError,
    UploadFailedError,
    UserNotFoundError,
)

ErrorRule = tuple[tuple[str, ...], type[AuthError]]

NETWORK_PHRASES = ("network", "connection")

SIGN_IN_RULES: Sequence[ErrorRule] = (
    (("invalid login", "invalid credentials"), InvalidCredentialsError),
    (("email not confirmed", "not verified"), EmailNotVerifiedError),
    (NETWORK_PHRASES, NetworkError),
    (("not found",), UserNotFoundError),
)

SIGN_UP_RULES: Sequence[ErrorRule] = (
    (("already registered", "already exists"), EmailAlreadyExistsError),
    (NETWORK_PHRASES, NetworkError),
)

VERIFY_OTP_RULES: Sequence[ErrorRule] = (
    (("invalid", "expired"), InvalidCredentialsError),
    (NETWORK_PHRASES, NetworkError),
)

NETWORK_ONLY_RULES: Sequence[ErrorRule] = (
    (NETWORK_PHRASES, NetworkError),
)


def is_transport_error(error: BaseException) -> bool:
    """Whether the failure happened below HTTP (DNS, connect, timeout)."""
    if isinstance(error, httpx.TransportError):
        return True
    # gotrue wraps retryable fetch failures in its own class
    return type(error).__name__ == "AuthRetryableFetchError"


def _error_text(error: BaseException) -> str:
    parts = [str(error)]
    message = getattr(error, "message", None)
    if message and message not in parts:
        parts.append(str(message))
    return " ".join(parts).lower()


def map_backend_error(
    error: BaseException,
    rules: Sequence[ErrorRule],
    fallback: type[AuthError] | None = None,
) -> AuthError:
    """
    Classify a raw backend exception.

    Args:
        error: The exception raised by the Supabase client
        rules: Ordered (phrases, error class) pairs
        fallback: Class for unmatched errors; UnknownAuthError(error) if None

    Returns:
        A member of the auth error taxonomy. Taxonomy errors pass through.
    """
    if isinstance(error, AuthError):
        return error

    text = _error_text(error)
    for phrases, error_cls in rules:
        if any(phrase in text for phrase in phrases):
            return error_cls()

    if is_transport_error(error):
        return NetworkError()

    if fallback is not None:
        return fallback()
    return UnknownAuthError(error)


def map_upload_error(error: BaseException) -> AuthError:
    """Uploads only distinguish connectivity from everything else."""
    return map_backend_error(error, NETWORK_ONLY_RULES, fallback=UploadFailedError)