"""
Abstract base class for AI backends with plugin architecture.
"""

import asyncio
import os
import time
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Sequence
from dataclasses import dataclass
import aiohttp
from loguru import logger


@dataclass
class AIResponse:
    """Structured AI response data."""

    content: str
    model: str
    response_time: Optional[float] = None
    backend_type: Optional[str] = None
    raw_response: Optional[Dict[str, Any]] = None


class AIBackend(ABC):
    """Abstract base class for AI backends."""

    # Environment variables checked, in order, for the provider API key
    api_key_env: Sequence[str] = ()

    def __init__(self, api_url: str, model: str, timeout: int = 60, temperature: float = 0.2):
        """Initialize the AI backend."""
        self.api_url = api_url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.backend_type = self.__class__.__name__.lower().replace('backend', '')

    @abstractmethod
    async def call_api(self, prompt: str) -> AIResponse:
        """Call the AI API with the given prompt."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the AI backend is healthy and responsive."""
        pass

    @abstractmethod
    async def list_models(self) -> list[str]:
        """List available models from the backend."""
        pass

    @property
    def api_key(self) -> Optional[str]:
        """API key taken from the environment, if the provider needs one."""
        for name in self.api_key_env:
            value = os.environ.get(name)
            if value:
                return value
        return None

    def _require_api_key(self) -> str:
        """Return the API key or fail naming the variable to set."""
        key = self.api_key
        if not key:
            raise AIBackendError(
                f"Environment variable {' or '.join(self.api_key_env)} is not set "
                f"(required by the {self.backend_type} provider)"
            )
        return key

    def _headers(self) -> Dict[str, str]:
        """Request headers, including authentication."""
        return {"Content-Type": "application/json"}

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded JSON response."""
        async with aiohttp.ClientSession() as session:
            try:
                async with session.post(
                    url,
                    json=payload,
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    response.raise_for_status()
                    return await response.json()

            except aiohttp.ClientResponseError as e:
                logger.error(f"{self.backend_type} API error: {e.status} {e.message}")
                raise AIBackendError(f"{self.backend_type} API returned {e.status}: {e.message}") from e
            except aiohttp.ClientError as e:
                logger.error(f"{self.backend_type} API error: {e}")
                raise AIBackendError(f"Could not reach {self.backend_type} API: {e}") from e
            except asyncio.TimeoutError as e:
                logger.error(f"{self.backend_type} API timeout after {self.timeout}s")
                raise AIBackendError(f"{self.backend_type} API timed out after {self.timeout}s") from e

    async def _get_json(self, url: str, timeout: int = 10) -> Dict[str, Any]:
        """GET a URL and return the decoded JSON response."""
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                response.raise_for_status()
                return await response.json()

    def _log_request(self, prompt: str) -> None:
        """Log the API request details."""
        logger.debug(f"AI API request to {self.backend_type}")
        logger.debug(f"URL: {self.api_url}")
        logger.debug(f"Model: {self.model}")
        logger.debug(f"Prompt length: {len(prompt)} characters")
        logger.debug(f"Timeout: {self.timeout}s")

    def _log_response(self, response: AIResponse) -> None:
        """Log the API response details."""
        logger.debug(f"AI API response from {self.backend_type}")
        logger.debug(f"Response length: {len(response.content)} characters")
        if response.response_time:
            logger.debug(f"Response time: {response.response_time:.2f}s")

    async def generate(self, prompt: str) -> AIResponse:
        """Call the AI API once and record timing."""
        self._log_request(prompt)
        start_time = time.time()

        response = await self.call_api(prompt)
        response.response_time = time.time() - start_time

        self._log_response(response)
        return response


class AIBackendError(Exception):
    """Custom exception for AI backend failures."""
    pass
