"""OpenAI provider implementation."""

import os

from nameforge.llm.base import BaseLLMProvider, LLMConfig


class OpenAIProvider(BaseLLMProvider):
    """OpenAI API provider.

    Requires OPENAI_API_KEY environment variable or api_key in config.
    ``api_base`` points the client at any OpenAI-compatible endpoint.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None

    @property
    def name(self) -> str:
        return "openai"

    def _api_key(self) -> str | None:
        return self.config.api_key or os.environ.get("OPENAI_API_KEY")

    def _get_client(self):
        """Lazy load OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(
                api_key=self._api_key(),
                base_url=self.config.api_base,
                timeout=self.config.timeout,
            )
        return self._client

    def is_available(self) -> bool:
        return bool(self._api_key())

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        response = self._get_client().chat.completions.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        return response.choices[0].message.content or ""
