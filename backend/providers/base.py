"""Base classes and models for generative-text providers."""

from abc import ABC, abstractmethod

from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel


class ModelConfig(BaseModel):
    """Configuration for a chat model.

    Attributes:
        provider_type: Provider key (e.g., "gemini")
        model_id: Model identifier (e.g., "gemini-2.5-flash")
        api_key: API key injected from settings
    """

    model_config = {"frozen": True}

    provider_type: str
    model_id: str
    api_key: str = ""


class LLMProvider(ABC):
    """Abstract base class for chat model providers."""

    @abstractmethod
    def get_llm(self, config: ModelConfig) -> BaseChatModel:
        """Return a configured chat model client for the given config.

        Args:
            config: Model configuration with provider details

        Returns:
            A configured LangChain chat model
        """
        pass
