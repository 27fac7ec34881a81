"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        SharadError: Base exception for all application errors.
        ConfigurationError: Configuration-related errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_from_settings: Set up logging from Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from sharad.core.config import (
    AIProviderSettings,
    Settings,
    StorageSettings,
    TurnSettings,
    clear_settings_cache,
    get_settings,
)
from sharad.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    CharacterNotFoundError,
    ConfigurationError,
    ConversationNotInitializedError,
    DiceRollError,
    GameEngineError,
    GameMessageParseError,
    ImageGenerationError,
    InvalidEdgeActionError,
    InvalidOperationError,
    InvalidValueError,
    NoMessageFoundError,
    ProtocolError,
    RunFailedError,
    RunTimeoutError,
    SharadError,
    ToolArgumentError,
    ToolDispatchError,
    TypeMismatchError,
    UnknownAttributeError,
    UnknownToolError,
    UnsupportedOperationError,
    UpdateError,
)
from sharad.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    unbind_context,
)


__all__ = [
    # Config
    "AIProviderSettings",
    "Settings",
    "StorageSettings",
    "TurnSettings",
    "clear_settings_cache",
    "get_settings",
    # Exceptions
    "AIConnectionError",
    "AIControlError",
    "AIRateLimitError",
    "AIResponseError",
    "CharacterNotFoundError",
    "ConfigurationError",
    "ConversationNotInitializedError",
    "DiceRollError",
    "GameEngineError",
    "GameMessageParseError",
    "ImageGenerationError",
    "InvalidEdgeActionError",
    "InvalidOperationError",
    "InvalidValueError",
    "NoMessageFoundError",
    "ProtocolError",
    "RunFailedError",
    "RunTimeoutError",
    "SharadError",
    "ToolArgumentError",
    "ToolDispatchError",
    "TypeMismatchError",
    "UnknownAttributeError",
    "UnknownToolError",
    "UnsupportedOperationError",
    "UpdateError",
    # Logging
    "bind_context",
    "clear_context",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
