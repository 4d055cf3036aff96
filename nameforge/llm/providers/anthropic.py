"""Anthropic Claude provider implementation."""

import os

from nameforge.llm.base import BaseLLMProvider, LLMConfig


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude API provider.

    Requires ANTHROPIC_API_KEY environment variable or api_key in config.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None

    @property
    def name(self) -> str:
        return "anthropic"

    def _api_key(self) -> str | None:
        return self.config.api_key or os.environ.get("ANTHROPIC_API_KEY")

    def _get_client(self):
        """Lazy load Anthropic client."""
        if self._client is None:
            import anthropic

            self._client = anthropic.Anthropic(api_key=self._api_key(), timeout=self.config.timeout)
        return self._client

    def is_available(self) -> bool:
        return bool(self._api_key())

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Generate response using Claude.

        Text blocks of the reply are concatenated.
        """
        response = self._get_client().messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
