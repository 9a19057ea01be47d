"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and providing shared utilities for data operations.
"""

from typing import Any, TypeVar, Generic
from supabase import Client


T = TypeVar("T")

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for model type hints

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class ProfileRepository(BaseRepository[UserProfile]):
            def get_by_id(self, user_id: str) -> Optional[UserProfile]:
                result = self._db.table("profiles").select("*").eq("id", user_id).execute()
                if not result.data:
                    return None
                return UserProfile.model_validate(result.data[0])
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    @staticmethod
    def is_unique_violation(error: Exception) -> bool:
        """Whether a PostgREST error is a duplicate-key conflict."""
        code = getattr(error, "code", None)
        if code == UNIQUE_VIOLATION:
            return True
        text = str(error).lower()
        return UNIQUE_VIOLATION in text or "duplicate key" in text

    @staticmethod
    def first_row(data: Any) -> dict | None:
        """Return the first row of a PostgREST result payload, if any."""
        if not data:
            return None
        if isinstance(data, list):
            return data[0]
        return data
