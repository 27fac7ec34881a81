"""Configuration management for the Sharad Shadowrun client.

This module provides centralized configuration management using pydantic-settings,
supporting environment variables, .env files, and runtime configuration overrides.
The OpenAI API key is handled as a SecretStr.

Example:
    >>> from sharad.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.turn.poll_interval_seconds)
    0.5

Environment Variables:
    SHARAD_OPENAI_API_KEY: OpenAI API key
    SHARAD_ASSISTANT_MODEL: Model used when creating a game assistant
    SHARAD_TURN_POLL_INTERVAL_SECONDS: Delay between run status polls
    SHARAD_TURN_TURN_TIMEOUT_SECONDS: Wall-clock limit of a single turn
    SHARAD_DATA_PATH: Path to the data directory
    SHARAD_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sharad.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Configuration for the OpenAI assistant and image services.

    Attributes:
        openai_api_key: OpenAI API key.
        assistant_model: Model used when a new game assistant is created.
        assistant_name: Display name given to created assistants.
        assistant_temperature: Sampling temperature of created assistants.
        image_model: Model used for character portraits.
        image_size: Portrait size requested from the image service.
        max_retries: Maximum retry attempts for idempotent service reads.
        timeout_seconds: Per-request timeout of the HTTP client.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHARAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    assistant_model: str = Field(
        default="gpt-4o",
        description="Model for new game assistants",
    )
    assistant_name: str = Field(
        default="Sharad Game Master",
        description="Name of created assistants",
    )
    assistant_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Assistant sampling temperature",
    )
    image_model: str = Field(
        default="dall-e-3",
        description="Model for character portraits",
    )
    image_size: Literal["1024x1024", "1024x1792", "1792x1024"] = Field(
        default="1024x1792",
        description="Portrait size",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum API retry attempts",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="API request timeout",
    )


class TurnSettings(BaseSettings):
    """Configuration for the turn orchestration loop.

    Attributes:
        poll_interval_seconds: Delay between two run status polls.
        turn_timeout_seconds: Wall-clock limit for one turn's run.
        max_tool_calls_per_batch: Upper bound on tool calls accepted in one
            required-action batch.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHARAD_TURN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    poll_interval_seconds: float = Field(
        default=0.5,
        gt=0,
        lt=5,
        description="Delay between run status polls",
    )
    turn_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Wall-clock limit of one turn",
    )
    max_tool_calls_per_batch: int = Field(
        default=32,
        ge=1,
        description="Maximum tool calls handled in one batch",
    )

    @model_validator(mode="after")
    def validate_poll_interval(self) -> "TurnSettings":
        """Ensure at least one poll fits in the turn timeout.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If poll_interval_seconds >= turn_timeout_seconds.
        """
        if self.poll_interval_seconds >= self.turn_timeout_seconds:
            raise ConfigurationError(
                f"poll_interval_seconds ({self.poll_interval_seconds}) must be less than "
                f"turn_timeout_seconds ({self.turn_timeout_seconds})",
                config_key="poll_interval_seconds",
            )
        return self


class StorageSettings(BaseSettings):
    """Configuration for file storage paths.

    Attributes:
        data_path: Root directory for application data and logs.
        image_path: Directory where generated portraits are written.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHARAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_path: Path = Field(
        default=Path("data"),
        description="Directory for application data",
    )
    image_path: Path = Field(
        default=Path("data/portraits"),
        description="Directory for generated portraits",
    )

    @field_validator("data_path", "image_path", mode="after")
    @classmethod
    def ensure_directory_exists(cls, value: Path) -> Path:
        """Ensure storage directories exist, creating them if necessary.

        Args:
            value: The path to validate and potentially create.

        Returns:
            The validated path.
        """
        value.mkdir(parents=True, exist_ok=True)
        return value


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        language: Language the game master is asked to narrate in.
        ai: Assistant and image service settings.
        turn: Turn orchestration settings.
        storage: File storage settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHARAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Sharad",
        description="Application name",
    )
    app_version: str = Field(
        default="0.2.9",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    language: str = Field(
        default="English",
        description="Narration language",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    turn: TurnSettings = Field(default_factory=TurnSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if not in debug mode.
        """
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "TurnSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
