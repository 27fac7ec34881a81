"""Argument models of the game master tools.

Tool arguments arrive as loosely structured JSON. These models coerce them
into sheet types: missing item quantities become 1, missing descriptions
become empty strings, and map entries without a name take their key.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sharad.models.character import (
    U8,
    AttributeRating,
    CharacterSheet,
    Contact,
    Item,
    MatrixAttributes,
    Nuyen,
    Quality,
    Race,
    SkillRating,
    Skills,
    create_character_sheet,
)


class ToolRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _named_map(value: Any) -> Any:
    """Fill missing ``name`` fields of a name-keyed mapping from the keys."""
    if isinstance(value, dict):
        return {
            key: ({"name": key, **entry} if isinstance(entry, dict) and "name" not in entry else entry)
            for key, entry in value.items()
        }
    return value


# =============================================================================
# Character Creation
# =============================================================================


class SkillEntry(ToolRequest):
    name: str
    rating: SkillRating


class SkillsPayload(ToolRequest):
    combat: list[SkillEntry] = Field(default_factory=list)
    physical: list[SkillEntry] = Field(default_factory=list)
    social: list[SkillEntry] = Field(default_factory=list)
    technical: list[SkillEntry] = Field(default_factory=list)
    knowledge: list[SkillEntry] = Field(default_factory=list)

    @staticmethod
    def _to_map(entries: list[SkillEntry]) -> dict[str, int]:
        return {entry.name: entry.rating for entry in entries}

    def active(self) -> Skills:
        return Skills(
            combat=self._to_map(self.combat),
            physical=self._to_map(self.physical),
            social=self._to_map(self.social),
            technical=self._to_map(self.technical),
        )

    def knowledge_map(self) -> dict[str, int]:
        return self._to_map(self.knowledge)


class AttributesPayload(ToolRequest):
    body: AttributeRating
    agility: AttributeRating
    reaction: AttributeRating
    strength: AttributeRating
    willpower: AttributeRating
    logic: AttributeRating
    intuition: AttributeRating
    charisma: AttributeRating
    edge: AttributeRating
    magic: U8 | None = None
    resonance: U8 | None = None


class InventoryPayload(ToolRequest):
    items: list[Item] = Field(default_factory=list)


class CharacterCreationRequest(ToolRequest):
    """Arguments of ``create_character_sheet``."""

    name: str = Field(min_length=1)
    race: Race
    gender: str
    backstory: str
    main: bool = False
    attributes: AttributesPayload
    skills: SkillsPayload = Field(default_factory=SkillsPayload)
    qualities: list[Quality] = Field(default_factory=list)
    nuyen: Nuyen = 0
    inventory: InventoryPayload = Field(default_factory=InventoryPayload)
    contacts: list[Contact] = Field(default_factory=list)

    def build(self) -> CharacterSheet:
        """Create the character sheet this request describes."""
        attributes = self.attributes.model_dump(exclude={"magic", "resonance"})
        return create_character_sheet(
            name=self.name,
            race=self.race,
            gender=self.gender,
            backstory=self.backstory,
            main=self.main,
            attributes=attributes,
            magic=self.attributes.magic or 0,
            resonance=self.attributes.resonance or 0,
            skills=self.skills.active(),
            knowledge_skills=self.skills.knowledge_map(),
            qualities=self.qualities,
            nuyen=self.nuyen,
            inventory={item.name: item for item in self.inventory.items},
            contacts={contact.name: contact for contact in self.contacts},
        )


# =============================================================================
# Attribute Updates
# =============================================================================


class CharacterRequest(ToolRequest):
    character_name: str = Field(min_length=1)


class BasicAttributesRequest(CharacterRequest):
    """Arguments of ``update_basic_attributes``."""

    updates: dict[str, Any] = Field(min_length=1)


class SkillUpdates(ToolRequest):
    skills: Skills | None = None
    knowledge_skills: dict[str, SkillRating] | None = None


class SkillsRequest(CharacterRequest):
    """Arguments of ``update_skills``."""

    updates: SkillUpdates


class InventoryRequest(CharacterRequest):
    """Arguments of ``update_inventory``.

    ``items`` may be a single item object, a map of name to item, or a
    list of items; it is normalized to a name-keyed map.
    """

    operation: str
    items: dict[str, Item]

    @field_validator("items", mode="before")
    @classmethod
    def normalize_items(cls, v: Any) -> Any:
        if isinstance(v, dict) and "name" in v and not isinstance(v["name"], dict):
            return {v["name"]: v}
        if isinstance(v, list):
            return {(entry.get("name") if isinstance(entry, dict) else None): entry for entry in v}
        return _named_map(v)


class QualitiesRequest(CharacterRequest):
    """Arguments of ``update_qualities``."""

    operation: str
    qualities: list[Quality]


class MatrixAttributesRequest(CharacterRequest):
    """Arguments of ``update_matrix_attributes``."""

    matrix_attributes: MatrixAttributes


class ContactsRequest(CharacterRequest):
    """Arguments of ``update_contacts``."""

    operation: str
    contacts: dict[str, Contact]

    @field_validator("contacts", mode="before")
    @classmethod
    def fill_contact_names(cls, v: Any) -> Any:
        return _named_map(v)


class AugmentationsRequest(CharacterRequest):
    """Arguments of ``update_augmentations``."""

    operation: str
    augmentation_type: Literal["cyberware", "bioware"]
    augmentations: list[str]


class ImageRequest(ToolRequest):
    """Arguments of ``generate_character_image``."""

    image_generation_prompt: str = Field(min_length=1)


__all__ = [
    "ToolRequest",
    "SkillEntry",
    "SkillsPayload",
    "AttributesPayload",
    "InventoryPayload",
    "CharacterCreationRequest",
    "CharacterRequest",
    "BasicAttributesRequest",
    "SkillUpdates",
    "SkillsRequest",
    "InventoryRequest",
    "QualitiesRequest",
    "MatrixAttributesRequest",
    "ContactsRequest",
    "AugmentationsRequest",
    "ImageRequest",
]
