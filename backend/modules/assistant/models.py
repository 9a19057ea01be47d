"""
Assistant module data models.
"""

import uuid
from datetime import datetime, timezone
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One bubble in the assistant chat."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str
    is_from_user: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}
