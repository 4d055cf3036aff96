"""LLM provider implementations."""

from .anthropic import AnthropicProvider
from .gemini import GeminiProvider
from .lmstudio import LMStudioProvider
from .ollama import OllamaProvider
from .openai import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "OpenAIProvider",
    "OllamaProvider",
    "LMStudioProvider",
    "GeminiProvider",
]
