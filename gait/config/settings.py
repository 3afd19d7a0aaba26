"""
Configuration management with Pydantic validation and environment variable support.
"""

import json
import os
from pathlib import Path
from typing import Dict, Literal, Optional, Tuple, Type
from loguru import logger
from pydantic import BaseModel, Field, PrivateAttr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource


DEFAULT_PROVIDER = "ollama"
DEFAULT_OLLAMA_MODEL = "llama3"
DEFAULT_MODEL = f"{DEFAULT_PROVIDER}/{DEFAULT_OLLAMA_MODEL}"

# Models used when a provider is selected without an explicit model
PROVIDER_DEFAULT_MODELS = {
    "ollama": DEFAULT_OLLAMA_MODEL,
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "google": "gemini-1.5-flash",
    "cohere": "command-r",
    "mistral": "mistral-small-latest",
}


class ProviderSettings(BaseModel):
    """Per-provider configuration."""

    model: str = Field(description="Model name understood by the provider")


class AISettings(BaseModel):
    """AI backend configuration."""

    ollama_url: str = Field(
        default="http://localhost:11434",
        description="Local Ollama server endpoint"
    )
    timeout: int = Field(
        default=60,
        ge=5,
        le=600,
        description="Request timeout in seconds for the HTTP call and the CLI fallback"
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature"
    )


class GitSettings(BaseModel):
    """Git operation configuration."""

    max_diff_lines: int = Field(
        default=2000,
        ge=50,
        le=20000,
        description="Maximum lines of staged diff sent to the model"
    )


class UISettings(BaseModel):
    """User interface configuration."""

    use_colors: bool = Field(
        default=True,
        description="Use colored output"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )


def _default_providers() -> Dict[str, ProviderSettings]:
    return {DEFAULT_PROVIDER: ProviderSettings(model=DEFAULT_OLLAMA_MODEL)}


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    active_provider: str = Field(
        default=DEFAULT_PROVIDER,
        description="Provider used when --model does not name one"
    )
    providers: Dict[str, ProviderSettings] = Field(default_factory=_default_providers)
    ai: AISettings = Field(default_factory=AISettings)
    git: GitSettings = Field(default_factory=GitSettings)
    ui: UISettings = Field(default_factory=UISettings)

    _config_path: Optional[Path] = PrivateAttr(default=None)

    model_config = {
        "env_prefix": "GAIT_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "extra": "ignore",
    }

    def __init__(self, config_path: Optional[Path] = None, **kwargs):
        config_path = Path(config_path).expanduser() if config_path else self.default_config_path()

        # Load the config file when nothing explicit was passed
        if not kwargs:
            kwargs = self._read_config_file(config_path)

        # OLLAMA_HOST is the variable the ollama CLI itself understands
        ollama_host = os.getenv("OLLAMA_HOST")
        if ollama_host:
            if "://" not in ollama_host:
                ollama_host = f"http://{ollama_host}"
            ai = kwargs.get("ai") or {}
            if isinstance(ai, AISettings):
                ai = ai.model_dump()
            kwargs["ai"] = {**ai, "ollama_url": ollama_host}

        super().__init__(**kwargs)
        self._config_path = config_path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # The config file arrives as init kwargs; GAIT_* variables win over it
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @property
    def config_file(self) -> Path:
        """The config file these settings were read from and are saved to."""
        return self._config_path or self.default_config_path()

    @staticmethod
    def default_config_path() -> Path:
        """Get the default config file path."""
        return Path.home() / ".gait" / "gait.json"

    @classmethod
    def _read_config_file(cls, config_path: Path) -> dict:
        """Read the JSON record from disk, translating it to field names."""
        if not config_path.exists():
            return {}

        try:
            with open(config_path) as f:
                config_data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
            return {}

        if not isinstance(config_data, dict):
            logger.warning(f"Ignoring config file {config_path}: expected a JSON object")
            return {}

        return cls._from_record(config_data)

    @staticmethod
    def _from_record(record: dict) -> dict:
        """Translate the on-disk camelCase record into constructor kwargs."""
        data = {k: v for k, v in record.items() if k in ("providers", "ai", "git", "ui")}

        active = record.get("activeProvider", record.get("active_provider"))
        if active:
            data["active_provider"] = active

        # Older onboarding wrote a flat "model" key meant for Ollama
        legacy_model = record.get("model")
        if legacy_model:
            providers = dict(data.get("providers") or {})
            providers.setdefault(DEFAULT_PROVIDER, {"model": legacy_model})
            data["providers"] = providers

        return data

    def to_record(self) -> dict:
        """Serialize settings into the on-disk camelCase record."""
        data = self.model_dump()
        record = {
            "activeProvider": data.pop("active_provider"),
            "providers": data.pop("providers"),
        }
        record.update(data)
        return record

    @classmethod
    def from_file(cls, config_path: Path) -> "Settings":
        """Load settings from a configuration file."""
        config_path = Path(config_path).expanduser()
        if not config_path.exists():
            logger.info(f"Config file {config_path} does not exist, using defaults")
        return cls(config_path=config_path)

    def save_to_file(self, config_path: Optional[Path] = None) -> Path:
        """Save current settings to a configuration file."""
        config_path = config_path or self.config_file
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            json.dump(self.to_record(), f, indent=2)
        logger.debug(f"Saved configuration to {config_path}")
        return config_path

    def provider_model(self, provider: str) -> str:
        """Configured model for a provider, or the provider's default."""
        entry = self.providers.get(provider)
        if entry:
            return entry.model
        return PROVIDER_DEFAULT_MODELS.get(provider, DEFAULT_OLLAMA_MODEL)

    def set_provider_model(self, provider: str, model: str) -> None:
        """Set the model for a provider."""
        self.providers[provider] = ProviderSettings(model=model)

    @property
    def model_string(self) -> str:
        """The active selection as "provider/model"."""
        entry = self.providers.get(self.active_provider)
        if not entry:
            return DEFAULT_MODEL
        return f"{self.active_provider}/{entry.model}"

    def resolve_model(self, model_spec: Optional[str] = None) -> Tuple[str, str]:
        """
        Resolve a --model value into (provider, model).

        "openai/gpt-4o" selects a provider explicitly. Anything else, including
        Ollama names such as "hf.co/org/model", is a model for the active provider.
        """
        if not model_spec:
            return self.active_provider, self.provider_model(self.active_provider)

        prefix, sep, rest = model_spec.partition("/")
        if sep and rest and prefix.lower() in PROVIDER_DEFAULT_MODELS:
            return prefix.lower(), rest

        return self.active_provider, model_spec

    @property
    def cache_dir(self) -> Path:
        """Get the cache directory."""
        base = Path(os.environ.get("XDG_CACHE_HOME", "~/.cache"))
        return (base / "gait").expanduser()

    @property
    def log_file(self) -> Path:
        """Get the log file path."""
        return self.cache_dir / "gait.log"
