"""
Mistral backend (OpenAI-compatible chat completions).
"""

from .openai import OpenAIBackend


class MistralBackend(OpenAIBackend):
    """Mistral La Plateforme backend."""

    default_url = "https://api.mistral.ai/v1"
    api_key_env = ("MISTRAL_API_KEY",)
