"""Ollama provider implementation."""

import httpx

from nameforge.llm.base import BaseLLMProvider, LLMConfig


class OllamaProvider(BaseLLMProvider):
    """Ollama local LLM provider.

    Uses the chat endpoint of Ollama's HTTP API.
    Default endpoint: http://localhost:11434
    """

    DEFAULT_BASE_URL = "http://localhost:11434"

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self.base_url = (config.api_base or self.DEFAULT_BASE_URL).rstrip("/")

    @property
    def name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Check if Ollama server is running."""
        try:
            response = httpx.get(f"{self.base_url}/api/tags", timeout=5.0)
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        response = httpx.post(
            f"{self.base_url}/api/chat",
            json={
                "model": self.config.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "stream": False,
                "format": "json",
                "options": {
                    "temperature": self.config.temperature,
                    "num_predict": self.config.max_tokens,
                },
            },
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        return response.json().get("message", {}).get("content", "")
