"""
Configuration Management.

Loads secrets from config/.env and settings from config/settings/*.yaml.
Nothing is hardcoded in code; all configuration comes from these sources.

Secrets (.env, overridable by environment variables):
    TELEGRAM_BOT_TOKEN, TELEGRAM_WEBHOOK_SECRET, LANGFLOW_API_KEY

Settings (YAML):
    application.yaml   - App identity, server, public URL, telegram intake
    langflow.yaml      - Langflow endpoint, flow id, request limits
    concurrency.yaml   - Per-conversation gate lease
    logging.yaml       - Logging configuration
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from modules.backend.core.config_schema import (
    ApplicationSchema,
    ConcurrencySchema,
    LangflowSchema,
    LoggingSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only tokens and keys."""

    telegram_bot_token: str = ""
    telegram_webhook_secret: str = ""
    langflow_api_key: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time.
    Properties return typed Pydantic model instances with attribute access.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._langflow = _load_validated(LangflowSchema, "langflow.yaml")
        self._concurrency = _load_validated(ConcurrencySchema, "concurrency.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def langflow(self) -> LangflowSchema:
        """Langflow endpoint settings."""
        return self._langflow

    @property
    def concurrency(self) -> ConcurrencySchema:
        """Concurrency settings (conversation gate)."""
        return self._concurrency

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_public_base_url() -> str:
    """Public URL of this service without a trailing slash ('' if unset)."""
    return get_app_config().application.public_url.rstrip("/")
