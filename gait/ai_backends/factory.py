"""
AI backend factory selecting a provider by name.
"""

from typing import Optional
from loguru import logger

from .base import AIBackend
from .ollama import OllamaBackend
from .openai import OpenAIBackend
from .anthropic import AnthropicBackend
from .google import GoogleBackend
from .cohere import CohereBackend
from .mistral import MistralBackend
from ..config.settings import Settings


class BackendFactory:
    """Factory for creating AI backends."""

    _backends = {
        "ollama": OllamaBackend,
        "openai": OpenAIBackend,
        "anthropic": AnthropicBackend,
        "google": GoogleBackend,
        "cohere": CohereBackend,
        "mistral": MistralBackend,
    }

    @classmethod
    def create_backend(
        cls,
        settings: Settings,
        provider: Optional[str] = None,
        model: Optional[str] = None
    ) -> AIBackend:
        """Create the backend for a provider (the active one by default)."""
        provider = (provider or settings.active_provider).lower()

        if provider not in cls._backends:
            raise ValueError(
                f"Unknown provider: {provider} "
                f"(supported: {', '.join(cls.list_supported_backends())})"
            )

        backend_class = cls._backends[provider]
        model = model or settings.provider_model(provider)

        # Only Ollama has a configurable endpoint; hosted providers use their own
        api_url = settings.ai.ollama_url if provider == "ollama" else ""

        logger.debug(f"Creating {provider} backend for model {model}")
        return backend_class(
            api_url=api_url,
            model=model,
            timeout=settings.ai.timeout,
            temperature=settings.ai.temperature
        )

    @classmethod
    async def test_all_backends(cls, settings: Settings) -> dict[str, bool]:
        """Test all backend types and return their status."""
        results = {}

        for backend_type in cls._backends:
            try:
                backend = cls.create_backend(settings, backend_type)
                results[backend_type] = await backend.health_check()
            except Exception as e:
                logger.debug(f"Failed to test {backend_type}: {e}")
                results[backend_type] = False

        return results

    @classmethod
    def list_supported_backends(cls) -> list[str]:
        """List all supported backend types."""
        return list(cls._backends.keys())
