"""
Shared behaviour for hosted (API key) providers.
"""

from typing import Any, Dict
from loguru import logger

from .base import AIBackend


class CloudBackend(AIBackend):
    """Base class for providers reached over their public REST API."""

    default_url = ""
    models_path = "/models"

    def __init__(self, api_url: str = "", model: str = "", timeout: int = 60, temperature: float = 0.2):
        super().__init__(api_url or self.default_url, model, timeout, temperature)

    def _parse_models(self, data: Dict[str, Any]) -> list[str]:
        """Extract model ids from the provider's model listing."""
        return [item.get("id", "") for item in data.get("data", []) if item.get("id")]

    async def list_models(self) -> list[str]:
        """List models available to the configured API key."""
        if not self.api_key:
            logger.debug(f"No API key for {self.backend_type}, cannot list models")
            return []
        try:
            data = await self._get_json(f"{self.api_url}{self.models_path}")
        except Exception as e:
            logger.error(f"Failed to list {self.backend_type} models: {e}")
            return []
        return self._parse_models(data)

    async def health_check(self) -> bool:
        """The provider is usable when a key is set and the model listing answers."""
        if not self.api_key:
            logger.debug(f"{self.backend_type} health check: no API key")
            return False
        try:
            await self._get_json(f"{self.api_url}{self.models_path}", timeout=5)
            return True
        except Exception as e:
            logger.debug(f"{self.backend_type} health check failed: {e}")
            return False
