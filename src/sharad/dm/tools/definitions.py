"""Function schemas of every tool the game master can call."""

from __future__ import annotations

from typing import Any

from sharad.dm.tools.base import ToolDefinition, object_schema


# =============================================================================
# Shared Schema Fragments
# =============================================================================


_RATING = {"type": "integer", "minimum": 0}
_CHARACTER_NAME = {"type": "string", "description": "Exact name of the character."}
_OPERATION = {"type": "string", "enum": ["Add", "Remove", "Modify"]}

_SKILL_LIST = {
    "type": "array",
    "items": object_schema({"name": {"type": "string"}, "rating": _RATING}, ["name", "rating"]),
}
_SKILL_MAP = {"type": "object", "additionalProperties": _RATING}

_ITEM = object_schema(
    {
        "name": {"type": "string"},
        "quantity": {"type": "integer", "minimum": 0, "default": 1},
        "description": {"type": "string", "default": ""},
    },
    ["name"],
)

_CONTACT = object_schema(
    {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "loyalty": {"type": "integer", "minimum": 0, "maximum": 12},
        "connection": {"type": "integer", "minimum": 0, "maximum": 12},
    },
    ["name", "loyalty", "connection"],
)

_QUALITY = object_schema({"name": {"type": "string"}, "positive": {"type": "boolean"}}, ["name", "positive"])

_ACTIVE_SKILLS = object_schema(
    {
        "combat": _SKILL_MAP,
        "physical": _SKILL_MAP,
        "social": _SKILL_MAP,
        "technical": _SKILL_MAP,
    }
)

_BASE_ATTRIBUTES = ["body", "agility", "reaction", "strength", "willpower", "logic", "intuition", "charisma", "edge"]


# =============================================================================
# Tool Definitions
# =============================================================================


CREATE_CHARACTER_SHEET = ToolDefinition(
    name="create_character_sheet",
    description="Create a new character (player or NPC) and add it to the roster.",
    parameters=object_schema(
        {
            "name": {"type": "string"},
            "race": {"type": "string", "enum": ["Human", "Elf", "Dwarf", "Ork", "Troll"]},
            "gender": {"type": "string"},
            "backstory": {"type": "string"},
            "main": {"type": "boolean", "description": "True for the player's character."},
            "attributes": object_schema(
                {
                    **{attr: {"type": "integer", "minimum": 1, "maximum": 15} for attr in _BASE_ATTRIBUTES},
                    "magic": _RATING,
                    "resonance": _RATING,
                },
                _BASE_ATTRIBUTES,
            ),
            "skills": object_schema(
                {
                    "combat": _SKILL_LIST,
                    "physical": _SKILL_LIST,
                    "social": _SKILL_LIST,
                    "technical": _SKILL_LIST,
                    "knowledge": _SKILL_LIST,
                }
            ),
            "qualities": {"type": "array", "items": _QUALITY},
            "nuyen": _RATING,
            "inventory": object_schema({"items": {"type": "array", "items": _ITEM}}),
            "contacts": {"type": "array", "items": _CONTACT},
        },
        ["name", "race", "gender", "backstory", "main", "attributes"],
    ),
)

PERFORM_DICE_ROLL = ToolDefinition(
    name="perform_dice_roll",
    description=(
        "Roll an attribute + skill test for a character. Returns the dice, hits "
        "(capped by the limit), success, glitch and critical flags."
    ),
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "attribute": {"type": "string"},
            "skill": {"type": "string"},
            "limit_type": {"type": "string", "enum": ["physical", "mental", "social"]},
            "threshold": _RATING,
            "edge_action": {"type": "string", "enum": ["RerollFailures", "AddExtraDice", "PushTheLimit"]},
            "extra_dice": _RATING,
        },
        ["character_name", "attribute", "skill", "limit_type"],
    ),
)

GENERATE_CHARACTER_IMAGE = ToolDefinition(
    name="generate_character_image",
    description="Generate a portrait of a character from a visual description.",
    parameters=object_schema(
        {"image_generation_prompt": {"type": "string"}},
        ["image_generation_prompt"],
    ),
)

UPDATE_BASIC_ATTRIBUTES = ToolDefinition(
    name="update_basic_attributes",
    description="Set personal information or base attributes of a character.",
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "updates": {
                "type": "object",
                "description": "Attribute name to new value, e.g. {\"body\": 5, \"lifestyle\": \"Low\"}.",
            },
        },
        ["character_name", "updates"],
    ),
)

UPDATE_SKILLS = ToolDefinition(
    name="update_skills",
    description="Replace the active skills and/or the knowledge skills of a character.",
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "updates": object_schema({"skills": _ACTIVE_SKILLS, "knowledge_skills": _SKILL_MAP}),
        },
        ["character_name", "updates"],
    ),
)

UPDATE_INVENTORY = ToolDefinition(
    name="update_inventory",
    description="Add, remove or modify items in a character's inventory.",
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "operation": _OPERATION,
            "items": {"type": "array", "items": _ITEM},
        },
        ["character_name", "operation", "items"],
    ),
)

UPDATE_QUALITIES = ToolDefinition(
    name="update_qualities",
    description="Add, remove or replace a character's qualities.",
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "operation": _OPERATION,
            "qualities": {"type": "array", "items": _QUALITY},
        },
        ["character_name", "operation", "qualities"],
    ),
)

UPDATE_MATRIX_ATTRIBUTES = ToolDefinition(
    name="update_matrix_attributes",
    description="Set the matrix attributes of a decker or technomancer.",
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "matrix_attributes": object_schema(
                {
                    "attack": _RATING,
                    "sleaze": _RATING,
                    "data_processing": _RATING,
                    "firewall": _RATING,
                },
                ["attack", "sleaze", "data_processing", "firewall"],
            ),
        },
        ["character_name", "matrix_attributes"],
    ),
)

UPDATE_CONTACTS = ToolDefinition(
    name="update_contacts",
    description="Add, remove or modify a character's contacts, keyed by contact name.",
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "operation": _OPERATION,
            "contacts": {"type": "object", "additionalProperties": _CONTACT},
        },
        ["character_name", "operation", "contacts"],
    ),
)

UPDATE_AUGMENTATIONS = ToolDefinition(
    name="update_augmentations",
    description="Add, remove or replace a character's cyberware or bioware.",
    parameters=object_schema(
        {
            "character_name": _CHARACTER_NAME,
            "operation": _OPERATION,
            "augmentation_type": {"type": "string", "enum": ["cyberware", "bioware"]},
            "augmentations": {"type": "array", "items": {"type": "string"}},
        },
        ["character_name", "operation", "augmentation_type", "augmentations"],
    ),
)


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    CREATE_CHARACTER_SHEET,
    PERFORM_DICE_ROLL,
    GENERATE_CHARACTER_IMAGE,
    UPDATE_BASIC_ATTRIBUTES,
    UPDATE_SKILLS,
    UPDATE_INVENTORY,
    UPDATE_QUALITIES,
    UPDATE_MATRIX_ATTRIBUTES,
    UPDATE_CONTACTS,
    UPDATE_AUGMENTATIONS,
)

TOOL_NAMES: frozenset[str] = frozenset(tool.name for tool in TOOL_DEFINITIONS)


def get_tools_as_openai_schema() -> list[dict[str, Any]]:
    """Get all tools in OpenAI function calling schema format."""
    return [tool.to_openai_schema() for tool in TOOL_DEFINITIONS]


__all__ = [
    "TOOL_DEFINITIONS",
    "TOOL_NAMES",
    "get_tools_as_openai_schema",
]
