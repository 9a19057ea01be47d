"""Factory functions for creating generative-text providers."""

from .base import LLMProvider
from .gemini import GeminiProvider


def get_providers() -> dict[str, LLMProvider]:
    """Get instances of each provider type.

    Returns:
        Dictionary mapping provider type names to provider instances.
    """
    return {
        "gemini": GeminiProvider(),
    }


def get_provider(provider_type: str) -> LLMProvider:
    """Look up a provider by type.

    Raises:
        ValueError: If the provider type is not supported
    """
    providers = get_providers()
    if provider_type not in providers:
        raise ValueError(
            f"Unsupported provider '{provider_type}'. "
            f"Available: {', '.join(sorted(providers))}"
        )
    return providers[provider_type]
