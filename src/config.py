"""Application configuration — env vars, YAML file, defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


def _repo_root() -> Path:
    """Find the repository root (directory containing pyproject.toml)."""
    current = Path(__file__).resolve().parent.parent
    if (current / "pyproject.toml").exists():
        return current
    return Path.cwd()


REPO_ROOT = _repo_root()


class OpenAISettings(BaseSettings):
    api_key: str = ""
    project_id: str = ""
    chat_model: str = "openai/gpt-4.1-mini"
    vision_model: str = "openai/gpt-4.1"
    audio_model: str = "openai/gpt-4o-mini-tts"
    image_model: str = "openai/dall-e-3"
    timeout_seconds: float = 60.0

    model_config = {"env_prefix": "THIRDEYE_OPENAI_"}


class NewsSettings(BaseSettings):
    api_key: str = ""
    base_url: str = "https://gnews.io/api/v4/top-headlines"
    timeout_seconds: float = 15.0

    model_config = {"env_prefix": "THIRDEYE_NEWS_"}


class ServerConfig(BaseSettings):
    host: str = "0.0.0.0"
    # Hosting platforms inject a bare PORT
    port: int = Field(8080, validation_alias=AliasChoices("THIRDEYE_SERVER_PORT", "PORT"))
    service_api_key: str = ""
    log_level: str = "info"
    max_body_bytes: int = 16 * 1024 * 1024
    cors_origins: list[str] = ["*"]
    # Peers whose X-Forwarded-For is trusted for the caller address
    trusted_proxies: str = "*"

    model_config = {"env_prefix": "THIRDEYE_SERVER_", "populate_by_name": True}


class LimitsConfig(BaseSettings):
    """Request rate limit (per address) and daily image quota (per user)."""

    rate_limit: str = "60/minute"
    rate_limit_enabled: bool = True
    daily_image_limit: int = 5

    model_config = {"env_prefix": "THIRDEYE_LIMITS_"}


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    news: NewsSettings = Field(default_factory=NewsSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)

    # Environment & Sentry
    environment: str = "development"
    sentry_dsn: str = ""

    model_config = {"env_prefix": "THIRDEYE_"}

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> AppConfig:
        """Load config from YAML file, with env var overrides."""
        if path is None:
            path = REPO_ROOT / "config" / "app.yml"

        values: dict[str, Any] = {}
        if path.exists():
            with open(path) as f:
                values = yaml.safe_load(f) or {}

        # Build groups explicitly so their own env prefixes still apply
        for key, group_cls in _GROUPS.items():
            if isinstance(values.get(key), dict):
                values[key] = group_cls(**values[key])

        return cls(**values)


_GROUPS: dict[str, type[BaseSettings]] = {
    "openai": OpenAISettings,
    "news": NewsSettings,
    "server": ServerConfig,
    "limits": LimitsConfig,
}
