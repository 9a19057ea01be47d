"""
Shared infrastructure for the Rentable client core.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- logging_config: Root logger setup
- repository: Base class for Supabase-backed repositories

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .exceptions import (
    RentableError,
    AuthenticationError,
    ExternalServiceError,
)
from .logging_config import setup_logging
from .repository import BaseRepository

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "RentableError",
    "AuthenticationError",
    "ExternalServiceError",
    "setup_logging",
    "BaseRepository",
]
