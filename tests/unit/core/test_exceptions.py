"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from sharad.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    CharacterNotFoundError,
    ConfigurationError,
    GameEngineError,
    GameMessageParseError,
    InvalidEdgeActionError,
    InvalidValueError,
    ProtocolError,
    RunFailedError,
    RunTimeoutError,
    SharadError,
    ToolDispatchError,
    TypeMismatchError,
    UnknownToolError,
    UpdateError,
)


class TestSharadError:
    """Tests for the base SharadError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = SharadError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = SharadError("Test error", details={"key": "value", "count": 42})
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(SharadError("Test", details={"x": 1}))
        assert "SharadError" in repr_str
        assert "x" in repr_str


class TestGameEngineExceptions:
    """Tests for game engine exceptions."""

    def test_character_not_found(self) -> None:
        """Test CharacterNotFoundError carries the name."""
        exc = CharacterNotFoundError("Kaze")
        assert exc.character_name == "Kaze"
        assert "Kaze" in str(exc)
        assert isinstance(exc, GameEngineError)

    def test_invalid_edge_action(self) -> None:
        """Test InvalidEdgeActionError message."""
        exc = InvalidEdgeActionError("Overdrive")
        assert exc.message == "Invalid edge action"
        assert exc.details["edge_action"] == "Overdrive"

    def test_update_error_context(self) -> None:
        """Test update errors record attribute and operation."""
        exc = TypeMismatchError("wrong kind", attribute="body", operation="Modify")
        assert exc.attribute == "body"
        assert exc.details == {"attribute": "body", "operation": "Modify"}
        assert isinstance(exc, UpdateError)
        assert isinstance(InvalidValueError("x"), GameEngineError)


class TestToolDispatchExceptions:
    """Tests for tool dispatch exceptions."""

    def test_unknown_tool(self) -> None:
        """Test UnknownToolError names the tool."""
        exc = UnknownToolError("hack_the_planet")
        assert exc.tool_name == "hack_the_planet"
        assert str(exc).startswith("Unknown tool: hack_the_planet")
        assert isinstance(exc, ToolDispatchError)


class TestAIControlExceptions:
    """Tests for assistant service exceptions."""

    def test_ai_control_error_with_model(self) -> None:
        """Test AIControlError with model and provider context."""
        exc = AIControlError("API failed", model="gpt-4o", provider="openai")
        assert exc.details == {"model": "gpt-4o", "provider": "openai"}

    def test_rate_limit_error(self) -> None:
        """Test AIRateLimitError with retry information."""
        exc = AIRateLimitError("Rate limited", retry_after_seconds=30.0)
        assert exc.details["retry_after_seconds"] == 30.0

    def test_run_failed_error(self) -> None:
        """Test RunFailedError keeps the status."""
        exc = RunFailedError("Run ended", status="expired")
        assert exc.status == "expired"

    def test_run_timeout_error(self) -> None:
        """Test RunTimeoutError keeps the timeout."""
        exc = RunTimeoutError("too slow", timeout_seconds=1.5)
        assert exc.timeout_seconds == 1.5

    def test_parse_error_keeps_raw_text(self) -> None:
        """Test GameMessageParseError keeps the text and diagnostic."""
        exc = GameMessageParseError("not json", "invalid JSON")
        assert exc.raw_text == "not json"
        assert exc.diagnostic == "invalid JSON"

    @pytest.mark.parametrize("error_type", [AIConnectionError, ProtocolError, GameMessageParseError])
    def test_inherits_from_ai_control_error(self, error_type: type[Exception]) -> None:
        """Test that turn-level errors share a base."""
        assert issubclass(error_type, AIControlError)


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_with_config_key(self) -> None:
        """Test ConfigurationError with config key."""
        exc = ConfigurationError("Missing key", config_key="openai_api_key")
        assert exc.details["config_key"] == "openai_api_key"
