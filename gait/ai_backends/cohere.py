"""
Cohere Chat (v2) backend.
"""

from typing import Any, Dict

from .base import AIBackendError, AIResponse
from .cloud import CloudBackend


class CohereBackend(CloudBackend):
    """Cohere backend using the v2 chat endpoint."""

    default_url = "https://api.cohere.com"
    models_path = "/v1/models"
    api_key_env = ("COHERE_API_KEY",)

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _parse_models(self, data: Dict[str, Any]) -> list[str]:
        return [item.get("name", "") for item in data.get("models", []) if item.get("name")]

    async def call_api(self, prompt: str) -> AIResponse:
        """Call the chat endpoint."""
        self._require_api_key()

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }

        data = await self._post_json(f"{self.api_url}/v2/chat", payload)

        content = data.get("message", {}).get("content") or []
        texts = [item.get("text", "") for item in content if item.get("type") == "text"]
        if not texts:
            raise AIBackendError("No text content in cohere response")

        return AIResponse(
            content="".join(texts).strip(),
            model=self.model,
            backend_type=self.backend_type,
            raw_response=data
        )
