"""LLM integrations: style judging and lexeme generation."""

from .base import BaseLLMProvider, LLMConfig, load_prompt, parse_json_reply
from .factory import (
    check_provider_availability,
    get_default_model,
    get_provider,
    list_providers,
)
from .judge import LLMStyleJudge
from .lexemes import LexemeGenerator

__all__ = [
    "BaseLLMProvider",
    "LLMConfig",
    "LLMStyleJudge",
    "LexemeGenerator",
    "load_prompt",
    "parse_json_reply",
    "get_provider",
    "get_default_model",
    "list_providers",
    "check_provider_availability",
]
