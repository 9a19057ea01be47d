"""
Profile repository for the profiles table.

All methods are synchronous PostgREST calls; AuthenticationService runs
them off the event loop. Raw client errors propagate so the service can
classify them.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from shared.repository import BaseRepository

from .exceptions import InvalidDataError
from .models import NewProfile, UserProfile

logger = logging.getLogger(__name__)


class ProfileRepository(BaseRepository[UserProfile]):
    """Reads and writes rows of the profiles table."""

    def __init__(self, db: Client, table: str = "profiles") -> None:
        super().__init__(db)
        self._table = table

    def _query(self):
        return self._db.table(self._table)

    def email_exists(self, email: str) -> bool:
        result = self._query().select("id").eq("email", email).execute()
        return bool(result.data)

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        """
        Fetch a single profile.

        Returns:
            The profile, or None when no row matches

        Raises:
            InvalidDataError: If more than one row matches or the row is malformed
        """
        result = self._query().select("*").eq("id", user_id).execute()
        rows = result.data or []
        if not rows:
            return None
        if len(rows) > 1:
            raise InvalidDataError(details={"user_id": user_id, "rows": len(rows)})
        return self._map_to_profile(rows[0])

    def insert_if_absent(self, profile: NewProfile) -> bool:
        """
        Insert a minimal profile row, tolerating an existing one.

        Returns:
            True if a row was created, False if it already existed
        """
        try:
            self._query().insert(profile.to_row()).execute()
        except Exception as e:
            if self.is_unique_violation(e):
                logger.debug(f"Profile {profile.id} already provisioned")
                return False
            raise
        return True

    def update(self, user_id: str, fields: dict[str, Any]) -> Optional[UserProfile]:
        """Apply a partial update and return the updated row if PostgREST echoes it."""
        result = self._query().update(fields).eq("id", user_id).execute()
        row = self.first_row(result.data)
        return self._map_to_profile(row) if row else None

    @staticmethod
    def _map_to_profile(row: dict[str, Any]) -> UserProfile:
        try:
            return UserProfile.model_validate(row)
        except PydanticValidationError as e:
            raise InvalidDataError(details={"errors": e.errors(include_url=False)}) from e
