"""Abstract base class for LLM providers."""

import json
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path

from nameforge.config.settings import LLMConfig

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Load a system prompt shipped with the package.

    Args:
        name: Prompt file name without extension

    Raises:
        FileNotFoundError: If the prompt file does not exist
    """
    prompt_path = PROMPTS_DIR / f"{name}.txt"
    if not prompt_path.exists():
        raise FileNotFoundError(f"System prompt not found: {prompt_path}")
    with open(prompt_path, encoding="utf-8") as f:
        return f.read()


def parse_json_reply(response_text: str) -> dict:
    """Extract the JSON object from a model reply.

    Handles replies wrapped in markdown code fences or surrounded by prose.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    text = response_text.strip()

    # Handle potential markdown code blocks
    if text.startswith("```"):
        lines = text.split("\n")
        json_lines = []
        in_json = False
        for line in lines:
            if line.startswith("```") and not in_json:
                in_json = True
                continue
            elif line.startswith("```") and in_json:
                break
            elif in_json:
                json_lines.append(line)
        text = "\n".join(json_lines)

    if not text.startswith("{"):
        start = text.find("{")
        end = text.rfind("}") + 1
        if start != -1 and end > start:
            text = text[start:end]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Nepodařilo se parsovat JSON odpověď: {e}\nOdpověď: {text[:500]}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Očekáván JSON objekt, přišlo: {type(data).__name__}")
    return data


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers.

    All LLM providers must implement this interface to be used by the
    style judge and the lexeme generator.
    """

    def __init__(self, config: LLMConfig):
        """Initialize provider with configuration.

        Args:
            config: LLM configuration
        """
        self.config = config

    @abstractmethod
    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Generate a response from the LLM.

        Args:
            system_prompt: Instructions for the model
            user_prompt: The user prompt to send

        Returns:
            The raw text response from the LLM
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and configured.

        Returns:
            True if provider can be used
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name."""
        pass
