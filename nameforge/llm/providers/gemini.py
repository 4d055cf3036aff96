"""Google Gemini provider implementation."""

import os

from nameforge.llm.base import BaseLLMProvider, LLMConfig


class GeminiProvider(BaseLLMProvider):
    """Google Gemini API provider via the Google Gen AI SDK.

    Requires GOOGLE_API_KEY environment variable or api_key in config.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None

    @property
    def name(self) -> str:
        return "gemini"

    def _api_key(self) -> str | None:
        return self.config.api_key or os.environ.get("GOOGLE_API_KEY")

    def _get_client(self):
        """Lazy load Google GenAI client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._api_key())
        return self._client

    def is_available(self) -> bool:
        return bool(self._api_key())

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Generate response using Gemini.

        The system prompt is passed as a system instruction.
        """
        from google.genai import types

        response = self._get_client().models.generate_content(
            model=self.config.model,
            contents=user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_tokens,
            ),
        )
        return response.text or ""
