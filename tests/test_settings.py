import json

import pytest
from pydantic import ValidationError

from gait.config.settings import DEFAULT_MODEL, Settings


def write_config(home, record):
    path = home / ".gait" / "gait.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(record if isinstance(record, str) else json.dumps(record))
    return path


def test_defaults_without_config_file():
    settings = Settings()
    assert settings.active_provider == "ollama"
    assert settings.model_string == DEFAULT_MODEL
    assert settings.ai.ollama_url == "http://localhost:11434"
    assert settings.ui.log_level == "WARNING"


def test_reads_camel_case_record(isolated_home):
    write_config(isolated_home, {
        "activeProvider": "openai",
        "providers": {"openai": {"model": "gpt-4o"}, "ollama": {"model": "qwen2.5-coder:7b"}},
    })
    settings = Settings()
    assert settings.active_provider == "openai"
    assert settings.model_string == "openai/gpt-4o"
    assert settings.provider_model("ollama") == "qwen2.5-coder:7b"


def test_legacy_model_key_is_the_ollama_model(isolated_home):
    write_config(isolated_home, {"model": "mistral:7b"})
    settings = Settings()
    assert settings.model_string == "ollama/mistral:7b"


def test_invalid_json_falls_back_to_defaults(isolated_home):
    write_config(isolated_home, "{not json")
    assert Settings().model_string == DEFAULT_MODEL


def test_ollama_host_overrides_url(monkeypatch):
    monkeypatch.setenv("OLLAMA_HOST", "10.0.0.5:11434")
    assert Settings().ai.ollama_url == "http://10.0.0.5:11434"


def test_env_prefix_overrides_nested_values(monkeypatch):
    monkeypatch.setenv("GAIT_GIT__MAX_DIFF_LINES", "500")
    assert Settings().git.max_diff_lines == 500


def test_validation_rejects_out_of_range_timeout():
    with pytest.raises(ValidationError):
        Settings(ai={"timeout": 1})


def test_save_round_trips_through_record(isolated_home):
    settings = Settings()
    settings.set_provider_model("anthropic", "claude-3-5-sonnet-latest")
    settings.active_provider = "anthropic"
    path = settings.save_to_file()

    record = json.loads(path.read_text())
    assert record["activeProvider"] == "anthropic"
    assert record["providers"]["anthropic"] == {"model": "claude-3-5-sonnet-latest"}

    reloaded = Settings.from_file(path)
    assert reloaded.model_string == "anthropic/claude-3-5-sonnet-latest"


@pytest.mark.parametrize("model_spec, expected", [
    (None, ("ollama", "llama3")),
    ("codellama", ("ollama", "codellama")),
    ("openai/gpt-4o", ("openai", "gpt-4o")),
    ("Mistral/mistral-large-latest", ("mistral", "mistral-large-latest")),
    ("hf.co/org/model:Q4", ("ollama", "hf.co/org/model:Q4")),
])
def test_resolve_model(model_spec, expected):
    assert Settings().resolve_model(model_spec) == expected


def test_provider_default_model():
    assert Settings().provider_model("openai") == "gpt-4o-mini"


def test_log_file_under_cache_dir(tmp_path):
    assert Settings().log_file == tmp_path / "cache" / "gait" / "gait.log"


def test_environment_overrides_saved_sections(monkeypatch):
    Settings().save_to_file()
    monkeypatch.setenv("GAIT_AI__TIMEOUT", "30")
    monkeypatch.setenv("GAIT_GIT__MAX_DIFF_LINES", "500")

    settings = Settings()

    assert settings.ai.timeout == 30
    assert settings.git.max_diff_lines == 500
    assert settings.ai.ollama_url == "http://localhost:11434"


def test_explicit_config_path_is_read_and_saved(isolated_home, tmp_path):
    write_config(isolated_home, {"activeProvider": "cohere"})
    custom = tmp_path / "team.json"
    custom.write_text(json.dumps({"providers": {"ollama": {"model": "phi3"}}}))

    settings = Settings.from_file(custom)
    assert settings.model_string == "ollama/phi3"
    assert settings.config_file == custom

    settings.set_provider_model("ollama", "phi3:mini")
    assert settings.save_to_file() == custom
    assert json.loads(custom.read_text())["providers"]["ollama"] == {"model": "phi3:mini"}


def test_missing_explicit_config_ignores_home_file(isolated_home, tmp_path):
    write_config(isolated_home, {"activeProvider": "cohere"})
    settings = Settings.from_file(tmp_path / "missing.json")
    assert settings.model_string == DEFAULT_MODEL
