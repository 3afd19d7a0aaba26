"""
Anthropic Messages API backend.
"""

from typing import Dict

from .base import AIBackendError, AIResponse
from .cloud import CloudBackend


class AnthropicBackend(CloudBackend):
    """Anthropic backend using the Messages API."""

    default_url = "https://api.anthropic.com/v1"
    api_key_env = ("ANTHROPIC_API_KEY",)
    api_version = "2023-06-01"
    max_tokens = 1024

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["anthropic-version"] = self.api_version
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def call_api(self, prompt: str) -> AIResponse:
        """Call the Messages API."""
        self._require_api_key()

        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        data = await self._post_json(f"{self.api_url}/messages", payload)

        blocks = [block.get("text", "") for block in data.get("content", []) if block.get("type") == "text"]
        if not blocks:
            raise AIBackendError("No text content in anthropic response")

        return AIResponse(
            content="".join(blocks).strip(),
            model=data.get("model", self.model),
            backend_type=self.backend_type,
            raw_response=data
        )
