"""Pydantic data models for Sharad.

This package contains the character sheet, the typed update algebra,
the game state container and the messages exchanged with the game master.
"""

from sharad.models.character import (
    BASE_ATTRIBUTES,
    CharacterSheet,
    Contact,
    DerivedAttributes,
    Item,
    LimitType,
    MatrixAttributes,
    Quality,
    Race,
    Skills,
    create_character_sheet,
    create_dummy_character,
)
from sharad.models.game_state import (
    CharacterAdded,
    ConversationHandle,
    GameState,
    StateEvent,
    StateUpdateResult,
    UpdateRequested,
)
from sharad.models.messages import GameMessage, Message, MessageType, UserMessage
from sharad.models.updates import (
    ATTRIBUTE_KINDS,
    KIND_SHAPES,
    CharacterSheetUpdate,
    CharacterValue,
    ContactMapValue,
    ItemMapValue,
    MatrixAttributesValue,
    NuyenValue,
    OptionalU8Value,
    QualityListValue,
    RaceValue,
    Shape,
    SkillMapValue,
    SkillsValue,
    StringListValue,
    StringValue,
    U8Value,
    UpdateOperation,
    UpdateOperationKind,
    ValueKind,
    apply_update,
    check_update,
    parse_character_value,
)


__all__ = [
    # Character
    "BASE_ATTRIBUTES",
    "CharacterSheet",
    "Contact",
    "DerivedAttributes",
    "Item",
    "LimitType",
    "MatrixAttributes",
    "Quality",
    "Race",
    "Skills",
    "create_character_sheet",
    "create_dummy_character",
    # Game state
    "CharacterAdded",
    "ConversationHandle",
    "GameState",
    "StateEvent",
    "StateUpdateResult",
    "UpdateRequested",
    # Messages
    "GameMessage",
    "Message",
    "MessageType",
    "UserMessage",
    # Updates
    "ATTRIBUTE_KINDS",
    "KIND_SHAPES",
    "CharacterSheetUpdate",
    "CharacterValue",
    "ContactMapValue",
    "ItemMapValue",
    "MatrixAttributesValue",
    "NuyenValue",
    "OptionalU8Value",
    "QualityListValue",
    "RaceValue",
    "Shape",
    "SkillMapValue",
    "SkillsValue",
    "StringListValue",
    "StringValue",
    "U8Value",
    "UpdateOperation",
    "UpdateOperationKind",
    "ValueKind",
    "apply_update",
    "check_update",
    "parse_character_value",
]
