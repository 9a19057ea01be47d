"""
Assistant module.

Single-turn generative-text chat used by the home screen.

Public API:
- AssistantService: Sends messages to Gemini
- ChatMessage: Chat bubble model
- Assistant exceptions
"""

from .models import ChatMessage
from .exceptions import AssistantError, AssistantConfigurationError, AssistantRequestError
from .service import AssistantService

__all__ = [
    "AssistantService",
    "ChatMessage",
    "AssistantError",
    "AssistantConfigurationError",
    "AssistantRequestError",
]
