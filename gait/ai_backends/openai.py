"""
OpenAI chat completions backend.
"""

from typing import Dict

from .base import AIBackendError, AIResponse
from .cloud import CloudBackend


class OpenAIBackend(CloudBackend):
    """OpenAI backend using the chat completions endpoint."""

    default_url = "https://api.openai.com/v1"
    api_key_env = ("OPENAI_API_KEY",)

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def call_api(self, prompt: str) -> AIResponse:
        """Call the chat completions API."""
        self._require_api_key()

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }

        data = await self._post_json(f"{self.api_url}/chat/completions", payload)

        choices = data.get("choices") or []
        if not choices:
            raise AIBackendError(f"No choices in {self.backend_type} response")

        return AIResponse(
            content=(choices[0].get("message", {}).get("content") or "").strip(),
            model=data.get("model", self.model),
            backend_type=self.backend_type,
            raw_response=data
        )
