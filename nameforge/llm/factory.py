"""Factory for creating LLM providers."""

import logging

from nameforge.llm.base import BaseLLMProvider, LLMConfig
from nameforge.llm.providers import (
    AnthropicProvider,
    GeminiProvider,
    LMStudioProvider,
    OllamaProvider,
    OpenAIProvider,
)

logger = logging.getLogger(__name__)

# Registry of available providers
PROVIDERS: dict[str, type[BaseLLMProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "ollama": OllamaProvider,
    "lmstudio": LMStudioProvider,
    "gemini": GeminiProvider,
}

ALIASES: dict[str, str] = {
    "claude": "anthropic",
    "gpt": "openai",
    "lm-studio": "lmstudio",
    "google": "gemini",
}

# Default models for each provider
DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
    "ollama": "llama3.2",
    "lmstudio": "local-model",
    "gemini": "gemini-2.0-flash",
}


def normalize_provider(name: str) -> str:
    normalized = name.lower()
    return ALIASES.get(normalized, normalized)


def get_provider(config: LLMConfig) -> BaseLLMProvider:
    """Create an LLM provider based on configuration.

    Args:
        config: LLM configuration with provider name

    Returns:
        Initialized LLM provider

    Raises:
        ValueError: If provider is not supported
    """
    provider_name = normalize_provider(config.provider)
    if provider_name not in PROVIDERS:
        available = ", ".join(sorted([*PROVIDERS, *ALIASES]))
        raise ValueError(
            f"Neznámý provider: '{config.provider}'. "
            f"Dostupné providery: {available}"
        )
    logger.debug("Creating %s provider with model %s", provider_name, config.model)
    return PROVIDERS[provider_name](config)


def get_default_model(provider: str) -> str:
    return DEFAULT_MODELS.get(normalize_provider(provider), "default")


def list_providers() -> list[str]:
    """List all provider names (without aliases)."""
    return list(PROVIDERS)


def check_provider_availability(config: LLMConfig) -> tuple[bool, str]:
    """Check if a provider is available and configured.

    Returns:
        Tuple of (is_available, message)
    """
    try:
        provider = get_provider(config)
    except ValueError as e:
        return False, str(e)
    if provider.is_available():
        return True, f"Provider '{config.provider}' je dostupný."
    return False, f"Provider '{config.provider}' není nakonfigurován (chybí API klíč nebo server neběží)."
