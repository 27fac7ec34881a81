"""Base classes for game master tools.

Tools are defined by Python and called by the assistant.
The assistant provides arguments, Python executes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolDefinition:
    """A tool the game master can invoke.

    Attributes:
        name: Function name the assistant calls.
        description: What the tool does, shown to the assistant.
        parameters: JSON schema of the arguments object.
    """

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_openai_schema(self) -> dict[str, Any]:
        """Convert to OpenAI function schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def object_schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    """Build a JSON schema for an object with the given properties."""
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


__all__ = [
    "ToolDefinition",
    "object_schema",
]
