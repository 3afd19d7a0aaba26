import asyncio

import aiohttp
import pytest

from gait.ai_backends.anthropic import AnthropicBackend
from gait.ai_backends.base import AIBackendError, AIResponse
from gait.ai_backends.cohere import CohereBackend
from gait.ai_backends.factory import BackendFactory
from gait.ai_backends.google import GoogleBackend
from gait.ai_backends.mistral import MistralBackend
from gait.ai_backends.ollama import OllamaBackend
from gait.ai_backends.openai import OpenAIBackend
from gait.config.settings import Settings


def make_ollama():
    return OllamaBackend(api_url="http://localhost:11434/", model="llama3", timeout=5)


def test_ollama_http_success(monkeypatch):
    backend = make_ollama()
    calls = []

    async def fake_post(url, payload):
        calls.append((url, payload))
        return {"response": " feat: add thing \n"}

    async def fail_cli(prompt):
        raise AssertionError("CLI fallback should not run")

    monkeypatch.setattr(backend, "_post_json", fake_post)
    monkeypatch.setattr(backend, "_call_cli", fail_cli)

    response = asyncio.run(backend.generate("PROMPT"))

    assert response.content == "feat: add thing"
    assert response.response_time is not None
    url, payload = calls[0]
    assert url == "http://localhost:11434/api/generate"
    assert payload["model"] == "llama3"
    assert payload["prompt"] == "PROMPT"
    assert payload["stream"] is False


def test_ollama_falls_back_to_cli_once(monkeypatch):
    backend = make_ollama()
    cli_prompts = []

    async def failing_post(url, payload):
        raise AIBackendError("connection refused")

    async def fake_cli(prompt):
        cli_prompts.append(prompt)
        return AIResponse(content="fix: from cli", model=backend.model, backend_type="ollama")

    monkeypatch.setattr(backend, "_post_json", failing_post)
    monkeypatch.setattr(backend, "_call_cli", fake_cli)

    response = asyncio.run(backend.call_api("PROMPT"))

    assert response.content == "fix: from cli"
    assert cli_prompts == ["PROMPT"]


def test_ollama_fails_when_both_paths_fail(monkeypatch):
    backend = make_ollama()

    async def failing_post(url, payload):
        raise aiohttp.ClientConnectionError("refused")

    async def missing_binary(*args, **kwargs):
        raise FileNotFoundError("ollama")

    monkeypatch.setattr(backend, "_post_json", failing_post)
    monkeypatch.setattr(asyncio, "create_subprocess_exec", missing_binary)

    with pytest.raises(AIBackendError, match="Failed to communicate with Ollama"):
        asyncio.run(backend.call_api("PROMPT"))


def test_parse_ollama_list_output():
    output = (
        "NAME                 ID              SIZE      MODIFIED\n"
        "llama3:latest        365c0bd3c000    4.7 GB    2 days ago\n"
        "\n"
        "qwen2.5-coder:7b     2b0496514337    4.7 GB    3 weeks ago\n"
    )
    assert OllamaBackend.parse_model_list(output) == ["llama3:latest", "qwen2.5-coder:7b"]


def test_cloud_backend_requires_api_key():
    backend = OpenAIBackend(model="gpt-4o-mini")
    with pytest.raises(AIBackendError, match="OPENAI_API_KEY"):
        asyncio.run(backend.call_api("PROMPT"))


def test_openai_response_parsing(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    backend = OpenAIBackend(model="gpt-4o-mini")
    calls = []

    async def fake_post(url, payload):
        calls.append(url)
        return {"model": "gpt-4o-mini-2024", "choices": [{"message": {"content": "docs: add usage\n"}}]}

    monkeypatch.setattr(backend, "_post_json", fake_post)
    response = asyncio.run(backend.call_api("PROMPT"))

    assert calls == ["https://api.openai.com/v1/chat/completions"]
    assert response.content == "docs: add usage"
    assert backend._headers()["Authorization"] == "Bearer sk-test"


def test_mistral_uses_its_own_endpoint_and_key(monkeypatch):
    monkeypatch.setenv("MISTRAL_API_KEY", "m-test")
    backend = MistralBackend(model="mistral-small-latest")
    assert backend.api_url == "https://api.mistral.ai/v1"
    assert backend.backend_type == "mistral"
    assert backend.api_key == "m-test"


def test_anthropic_response_parsing(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "a-test")
    backend = AnthropicBackend(model="claude-3-5-haiku-latest")

    async def fake_post(url, payload):
        assert url == "https://api.anthropic.com/v1/messages"
        assert payload["max_tokens"] == 1024
        return {"content": [{"type": "text", "text": "perf: cache lookups"}]}

    monkeypatch.setattr(backend, "_post_json", fake_post)
    assert asyncio.run(backend.call_api("PROMPT")).content == "perf: cache lookups"
    assert backend._headers()["x-api-key"] == "a-test"


def test_google_accepts_gemini_key_and_parses_parts(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "g-test")
    backend = GoogleBackend(model="gemini-1.5-flash")

    async def fake_post(url, payload):
        assert url.endswith("/models/gemini-1.5-flash:generateContent")
        return {"candidates": [{"content": {"parts": [{"text": "ci: "}, {"text": "run tests"}]}}]}

    monkeypatch.setattr(backend, "_post_json", fake_post)
    assert asyncio.run(backend.call_api("PROMPT")).content == "ci: run tests"
    assert backend._parse_models({"models": [{"name": "models/gemini-pro"}]}) == ["gemini-pro"]


def test_cohere_response_parsing(monkeypatch):
    monkeypatch.setenv("COHERE_API_KEY", "c-test")
    backend = CohereBackend(model="command-r")

    async def fake_post(url, payload):
        assert url == "https://api.cohere.com/v2/chat"
        return {"message": {"content": [{"type": "text", "text": "build: pin deps"}]}}

    monkeypatch.setattr(backend, "_post_json", fake_post)
    assert asyncio.run(backend.call_api("PROMPT")).content == "build: pin deps"


def test_empty_choices_is_an_error(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    backend = OpenAIBackend(model="gpt-4o-mini")

    async def fake_post(url, payload):
        return {"choices": []}

    monkeypatch.setattr(backend, "_post_json", fake_post)
    with pytest.raises(AIBackendError):
        asyncio.run(backend.call_api("PROMPT"))


def test_factory_creates_configured_backend():
    settings = Settings(ai={"ollama_url": "http://ollama.local:11434"})
    backend = BackendFactory.create_backend(settings)
    assert isinstance(backend, OllamaBackend)
    assert backend.api_url == "http://ollama.local:11434"
    assert backend.model == "llama3"

    cloud = BackendFactory.create_backend(settings, "anthropic")
    assert isinstance(cloud, AnthropicBackend)
    assert cloud.model == "claude-3-5-haiku-latest"
    assert cloud.api_url == "https://api.anthropic.com/v1"


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unknown provider: bard"):
        BackendFactory.create_backend(Settings(), "bard")


def test_cloud_health_check_without_key_is_false():
    assert asyncio.run(CohereBackend(model="command-r").health_check()) is False
