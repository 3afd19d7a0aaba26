"""
Google Gemini (Generative Language API) backend.
"""

from typing import Any, Dict

from .base import AIBackendError, AIResponse
from .cloud import CloudBackend


class GoogleBackend(CloudBackend):
    """Google Gemini backend using generateContent."""

    default_url = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env = ("GOOGLE_API_KEY", "GEMINI_API_KEY")

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key
        return headers

    def _parse_models(self, data: Dict[str, Any]) -> list[str]:
        names = [item.get("name", "") for item in data.get("models", [])]
        return [name.removeprefix("models/") for name in names if name]

    async def call_api(self, prompt: str) -> AIResponse:
        """Call generateContent for the configured model."""
        self._require_api_key()

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.temperature},
        }

        data = await self._post_json(f"{self.api_url}/models/{self.model}:generateContent", payload)

        candidates = data.get("candidates") or []
        if not candidates:
            raise AIBackendError("No candidates in google response")

        parts = candidates[0].get("content", {}).get("parts", [])
        return AIResponse(
            content="".join(part.get("text", "") for part in parts).strip(),
            model=self.model,
            backend_type=self.backend_type,
            raw_response=data
        )
