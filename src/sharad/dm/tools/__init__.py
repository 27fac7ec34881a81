"""Game master tools: definitions and argument models."""

from sharad.dm.tools.base import ToolDefinition
from sharad.dm.tools.definitions import TOOL_DEFINITIONS, TOOL_NAMES, get_tools_as_openai_schema


__all__ = [
    "ToolDefinition",
    "TOOL_DEFINITIONS",
    "TOOL_NAMES",
    "get_tools_as_openai_schema",
]
