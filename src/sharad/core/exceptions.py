"""Custom exception hierarchy for the Sharad Shadowrun client.

This module defines the exception hierarchy used across the application.
All exceptions inherit from SharadError, enabling unified error handling
at the application boundary while preserving domain-specific context.

The hierarchy follows the failure taxonomy of a turn:

- Transport errors (AIConnectionError) end the turn.
- Protocol errors (ProtocolError, UnknownToolError) end the turn after
  the run has been cancelled.
- Content errors (UpdateError, ToolArgumentError, GameMessageParseError)
  are contained where possible.
- Timeouts (RunTimeoutError) are their own kind.

Example:
    >>> from sharad.core.exceptions import RunFailedError
    >>> raise RunFailedError("Run ended early", status="expired")
"""

from __future__ import annotations

from typing import Any


class SharadError(Exception):
    """Base exception for all Sharad errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(SharadError):
    """Base exception for game mechanics errors (dice, characters, updates)."""


class DiceRollError(GameEngineError):
    """Raised when a dice roll request cannot be resolved."""

    def __init__(
        self,
        message: str,
        *,
        character_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with roller context.

        Args:
            message: Human-readable error description.
            character_name: Character the roll was made for.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if character_name:
            combined_details["character_name"] = character_name
        super().__init__(message, details=combined_details)


class InvalidEdgeActionError(DiceRollError):
    """Raised when an edge action name is not one of the known actions."""

    def __init__(self, edge_action: str, *, details: dict[str, Any] | None = None) -> None:
        combined_details = details or {}
        combined_details["edge_action"] = edge_action
        self.edge_action = edge_action
        super().__init__("Invalid edge action", details=combined_details)


class CharacterNotFoundError(GameEngineError):
    """Raised when a character name does not match any roster entry."""

    def __init__(self, character_name: str, *, details: dict[str, Any] | None = None) -> None:
        combined_details = details or {}
        combined_details["character_name"] = character_name
        self.character_name = character_name
        super().__init__(f"Character '{character_name}' not found", details=combined_details)


class UpdateError(GameEngineError):
    """Base exception for character sheet update failures.

    An update error aborts the single update it was raised for; the sheet
    is left untouched.
    """

    def __init__(
        self,
        message: str,
        *,
        attribute: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize update error with attribute context.

        Args:
            message: Human-readable error description.
            attribute: Name of the attribute being updated.
            operation: Operation being applied (Add, Remove, Modify).
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if attribute:
            combined_details["attribute"] = attribute
        if operation:
            combined_details["operation"] = operation
        self.attribute = attribute
        self.operation = operation
        super().__init__(message, details=combined_details)


class TypeMismatchError(UpdateError):
    """Raised when a value kind does not match the attribute's expected kind."""


class UnsupportedOperationError(UpdateError):
    """Raised when an operation is not defined for an attribute's shape."""


class UnknownAttributeError(UpdateError):
    """Raised when an update targets an attribute the sheet does not have."""


class InvalidValueError(UpdateError):
    """Raised when an update value falls outside the attribute's valid range."""


# =============================================================================
# Tool Dispatch Exceptions
# =============================================================================


class ToolDispatchError(SharadError):
    """Base exception for tool call dispatch failures."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if tool_name:
            combined_details["tool_name"] = tool_name
        self.tool_name = tool_name
        super().__init__(message, details=combined_details)


class UnknownToolError(ToolDispatchError):
    """Raised when the assistant calls a tool the client does not provide."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}", tool_name=tool_name)


class InvalidOperationError(ToolDispatchError):
    """Raised when an operation field is not exactly Add, Remove or Modify."""


class ToolArgumentError(ToolDispatchError):
    """Raised when tool arguments are malformed or missing required fields."""


# =============================================================================
# AI Control Domain Exceptions
# =============================================================================


class AIControlError(SharadError):
    """Base exception for all assistant-service related errors."""

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AI control error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AIConnectionError(AIControlError):
    """Raised when the assistant service is unreachable or rejects a call."""


class AIResponseError(AIControlError):
    """Raised when a service response cannot be processed."""


class NoMessageFoundError(AIResponseError):
    """Raised when a thread has no assistant text message to read."""


class AIRateLimitError(AIControlError):
    """Raised when the service rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        super().__init__(message, details=combined_details)


class ConversationNotInitializedError(AIControlError):
    """Raised when a turn is sent before a conversation exists."""


class ProtocolError(AIControlError):
    """Raised when a run reports a state the client cannot act upon."""


class RunFailedError(AIControlError):
    """Raised when a run ends in a failed, cancelled or expired status."""

    def __init__(
        self,
        message: str,
        *,
        status: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        combined_details["status"] = status
        self.status = status
        super().__init__(message, details=combined_details)


class RunTimeoutError(AIControlError):
    """Raised when a run does not finish within the turn timeout."""

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        combined_details["timeout_seconds"] = timeout_seconds
        self.timeout_seconds = timeout_seconds
        super().__init__(message, details=combined_details)


class GameMessageParseError(AIControlError):
    """Raised when the final assistant message is not a valid game message.

    Attributes:
        raw_text: The message text as received.
        diagnostic: The parser's description of the problem.
    """

    def __init__(self, raw_text: str, diagnostic: str) -> None:
        self.raw_text = raw_text
        self.diagnostic = diagnostic
        super().__init__(
            "Failed to parse game message",
            details={"diagnostic": diagnostic},
        )


class ImageGenerationError(AIControlError):
    """Raised when a character portrait cannot be generated or saved."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(SharadError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "SharadError",
    # Game engine exceptions
    "GameEngineError",
    "DiceRollError",
    "InvalidEdgeActionError",
    "CharacterNotFoundError",
    "UpdateError",
    "TypeMismatchError",
    "UnsupportedOperationError",
    "UnknownAttributeError",
    "InvalidValueError",
    # Tool dispatch exceptions
    "ToolDispatchError",
    "UnknownToolError",
    "InvalidOperationError",
    "ToolArgumentError",
    # AI control exceptions
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "NoMessageFoundError",
    "AIRateLimitError",
    "ConversationNotInitializedError",
    "ProtocolError",
    "RunFailedError",
    "RunTimeoutError",
    "GameMessageParseError",
    "ImageGenerationError",
    # Configuration exceptions
    "ConfigurationError",
]
