"""Generative-text provider implementations."""

from .base import LLMProvider, ModelConfig
from .factory import get_provider, get_providers

__all__ = ["LLMProvider", "ModelConfig", "get_provider", "get_providers"]
