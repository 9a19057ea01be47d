"""
Authentication module.

Handles sign-up with OTP verification, sign-in, profile provisioning,
profile photos and session lookup against Supabase.

Public API:
- IAuthService: Interface for auth operations
- AuthenticationService: Supabase-backed implementation
- UserProfile, AuthSession, AuthChangeEvent, UserType: Models
- Auth exceptions: the closed AuthError taxonomy
"""

from .interfaces import IAuthService, AuthSubscription
from .models import AuthChangeEvent, AuthSession, NewProfile, UserProfile, UserType
from .exceptions import (
    AuthError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    EmailNotVerifiedError,
    UserNotFoundError,
    NetworkError,
    InvalidDataError,
    UploadFailedError,
    UnknownAuthError,
)
from .service import AuthenticationService, create_authentication_service

__all__ = [
    # Interface
    "IAuthService",
    "AuthSubscription",
    # Implementation
    "AuthenticationService",
    "create_authentication_service",
    # Models
    "AuthChangeEvent",
    "AuthSession",
    "NewProfile",
    "UserProfile",
    "UserType",
    # Exceptions
    "AuthError",
    "EmailAlreadyExistsError",
    "InvalidCredentialsError",
    "EmailNotVerifiedError",
    "UserNotFoundError",
    "NetworkError",
    "InvalidDataError",
    "UploadFailedError",
    "UnknownAuthError",
]
