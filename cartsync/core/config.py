"""
Configuration management for CartSync.

Provides centralized, validated configuration from environment variables
with proper type checking and defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cartsync.core.exceptions import ConfigurationError

DEFAULT_ENDPOINT = "http://localhost:8082/api/v1"


class ApiConfig(BaseSettings):
    """Backend API configuration."""

    endpoint: str = Field(default=DEFAULT_ENDPOINT, alias="CARTSYNC_API_ENDPOINT")
    request_timeout: float = Field(default=30.0, alias="CARTSYNC_REQUEST_TIMEOUT")

    @field_validator("endpoint")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")


class SearchConfig(BaseSettings):
    """Product search configuration."""

    debounce_ms: int = Field(default=500, ge=0, alias="CARTSYNC_SEARCH_DEBOUNCE_MS")

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: str = Field(default="production", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # Where the login identity (token, username, balance) is persisted
    session_path: Path = Field(
        default=Path("~/.cartsync/session.json"), alias="CARTSYNC_SESSION_PATH"
    )

    # Component configurations
    api: ApiConfig = Field(default_factory=ApiConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes")
        return bool(v)

    def resolved_session_path(self) -> Path:
        """Return the session file path with ``~`` expanded."""
        return self.session_path.expanduser()

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    Raises:
        ConfigurationError: An environment value failed validation
    """
    global settings
    if settings is None:
        try:
            settings = Settings()
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e.error_count()} error(s)",
                details={"errors": [str(err.get("msg")) for err in e.errors()]},
            ) from e
    return settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global settings
    settings = None


def validate_required_settings() -> List[str]:
    """
    Validate that the settings needed to reach the backend are usable.

    Returns:
        List of missing or invalid settings
    """
    missing = []
    try:
        config = get_settings()

        if not config.api.endpoint.startswith(("http://", "https://")):
            missing.append("CARTSYNC_API_ENDPOINT")
        if config.api.request_timeout <= 0:
            missing.append("CARTSYNC_REQUEST_TIMEOUT")

    except Exception as e:
        missing.append(f"Configuration error: {e}")

    return missing


def print_configuration_summary():
    """Print a summary of the current configuration for debugging."""
    try:
        config = get_settings()
        print("=== CartSync Configuration Summary ===")
        print(f"Environment: {config.environment}")
        print(f"Debug Mode: {config.debug}")
        print(f"API Endpoint: {config.api.endpoint}")
        print(f"Request Timeout: {config.api.request_timeout}s")
        print(f"Search Debounce: {config.search.debounce_ms}ms")
        session_path = config.resolved_session_path()
        print(f"Session File: {session_path} ({'✓' if session_path.exists() else '✗'})")
        print("=" * 38)
    except Exception as e:
        print(f"Error loading configuration: {e}")
