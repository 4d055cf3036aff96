"""LM Studio provider implementation."""

import httpx

from nameforge.llm.base import BaseLLMProvider, LLMConfig


class LMStudioProvider(BaseLLMProvider):
    """LM Studio local LLM provider.

    Talks to LM Studio's OpenAI-compatible API.
    Default endpoint: http://localhost:1234/v1
    """

    DEFAULT_BASE_URL = "http://localhost:1234/v1"

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self.base_url = (config.api_base or self.DEFAULT_BASE_URL).rstrip("/")

    @property
    def name(self) -> str:
        return "lmstudio"

    def is_available(self) -> bool:
        """Check if LM Studio server is running."""
        try:
            response = httpx.get(f"{self.base_url}/models", timeout=5.0)
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Generate response using LM Studio.

        Raises:
            ValueError: If the reply carries no choices
        """
        response = httpx.post(
            f"{self.base_url}/chat/completions",
            json={
                "model": self.config.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": self.config.temperature,
                "max_tokens": self.config.max_tokens,
            },
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        choices = response.json().get("choices") or []
        if not choices:
            raise ValueError("LM Studio vrátilo odpověď bez výsledku")
        return choices[0].get("message", {}).get("content", "")
