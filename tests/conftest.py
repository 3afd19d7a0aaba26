import os

import pytest
from git import Repo
from loguru import logger

from gait.ai_backends.base import AIBackend, AIResponse


ISOLATED_ENV = (
    "OLLAMA_HOST",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "COHERE_API_KEY",
    "MISTRAL_API_KEY",
    "EDITOR",
    "VISUAL",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config, cache and provider keys away from the real user environment."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))

    for name in ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("GAIT_"):
            monkeypatch.delenv(name, raising=False)

    yield home

    # The CLI installs sinks bound to the runner streams
    logger.remove()


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """A fresh repository with one commit, used as the working directory."""
    path = tmp_path / "repo"
    path.mkdir()
    repo = Repo.init(path)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
        config.set_value("commit", "gpgsign", "false")

    (path / "README.md").write_text("# demo\n")
    repo.index.add(["README.md"])
    repo.index.commit("chore: initial commit")

    monkeypatch.chdir(path)
    return repo


class FakeBackend(AIBackend):
    """Backend returning a canned reply and recording prompts."""

    def __init__(self, reply="feat(core): add greeting\n\n- Say hello", model="fake-model"):
        super().__init__(api_url="http://fake", model=model)
        self.reply = reply
        self.prompts = []

    async def call_api(self, prompt):
        self.prompts.append(prompt)
        return AIResponse(content=self.reply, model=self.model, backend_type=self.backend_type)

    async def health_check(self):
        return True

    async def list_models(self):
        return [self.model]


@pytest.fixture
def fake_backend(monkeypatch):
    """Route every backend creation to a FakeBackend."""
    from gait.ai_backends.factory import BackendFactory

    backend = FakeBackend()
    monkeypatch.setattr(
        BackendFactory,
        "create_backend",
        classmethod(lambda cls, settings, provider=None, model=None: backend)
    )
    return backend
