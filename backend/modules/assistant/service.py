"""
Chat assistant service.

Sends one user message at a time to Gemini and keeps the visible chat
history for the home screen. Each request is single-turn.
"""

import logging
from typing import Any, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage

from providers.base import ModelConfig
from providers.factory import get_provider
from shared.config import Settings, get_settings

from .exceptions import AssistantConfigurationError, AssistantError, AssistantRequestError
from .models import ChatMessage

logger = logging.getLogger(__name__)


def extract_text(content: Any) -> str:
    """Flatten a chat model reply into plain text.

    Gemini replies are either a string or a list of parts, each a string or
    a dict with a "text" key.
    """
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("text"):
                parts.append(part["text"])
        return "".join(parts).strip()
    return ""


class AssistantService:
    """Single-turn Gemini chat with a local message history."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        self._settings = settings or get_settings()
        self._llm = llm
        self.history: list[ChatMessage] = []

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            if not self._settings.google_api_key:
                raise AssistantConfigurationError()
            config = ModelConfig(
                provider_type="gemini",
                model_id=self._settings.assistant_model,
                api_key=self._settings.google_api_key,
            )
            self._llm = get_provider(config.provider_type).get_llm(config)
        return self._llm

    async def send_message(self, text: str) -> str:
        """
        Send a message and return the assistant's reply.

        Raises:
            AssistantError: If the message is empty
            AssistantConfigurationError: If no API key is configured
            AssistantRequestError: If the request fails or the reply is empty
        """
        text = text.strip()
        if not text:
            raise AssistantError("Message is empty", code="EMPTY_MESSAGE")

        llm = self._get_llm()
        self.history.append(ChatMessage(text=text, is_from_user=True))

        try:
            response = await llm.ainvoke([HumanMessage(content=text)])
        except Exception as e:
            logger.warning(f"Assistant request failed: {e}")
            raise AssistantRequestError(
                f"Assistant request failed: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e

        reply = extract_text(getattr(response, "content", None))
        if not reply:
            raise AssistantRequestError("Assistant returned an empty reply")

        self.history.append(ChatMessage(text=reply, is_from_user=False))
        return reply

    def clear_history(self) -> None:
        self.history.clear()
