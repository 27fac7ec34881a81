"""Shadowrun character sheet model.

The sheet is the unit the game master creates through tool calls and keeps
in sync through attribute updates. Base attributes, skills and contacts are
range-validated on every assignment, so an out-of-range update is rejected
before it ever lands on a sheet.

Derived attributes (initiative, limits, condition monitors) are computed from
the base attributes by ``update_derived_attributes``. They are never written
by updates directly.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sharad.core.constants import (
    ATTRIBUTE_MAX,
    CONTACT_RATING_MAX,
    ESSENCE_MAX,
    NUYEN_MAX,
    SKILL_RATING_MAX,
    U8_MAX,
)


# =============================================================================
# Type Definitions
# =============================================================================


AttributeRating = Annotated[int, Field(ge=0, le=ATTRIBUTE_MAX, description="Base attribute (0-15)")]
SkillRating = Annotated[int, Field(ge=0, le=SKILL_RATING_MAX, description="Skill rating (0-13)")]
ContactRating = Annotated[int, Field(ge=0, le=CONTACT_RATING_MAX, description="Contact rating (0-12)")]
U8 = Annotated[int, Field(ge=0, le=U8_MAX)]
Nuyen = Annotated[int, Field(ge=0, le=NUYEN_MAX, description="Nuyen balance")]

SkillMap = dict[str, SkillRating]


class Race(StrEnum):
    """Metatypes a character can belong to."""

    HUMAN = "Human"
    ELF = "Elf"
    DWARF = "Dwarf"
    ORK = "Ork"
    TROLL = "Troll"


class LimitType(StrEnum):
    """Limits that cap the hits kept from a roll."""

    PHYSICAL = "physical"
    MENTAL = "mental"
    SOCIAL = "social"


BASE_ATTRIBUTES: tuple[str, ...] = (
    "body",
    "agility",
    "reaction",
    "strength",
    "willpower",
    "logic",
    "intuition",
    "charisma",
    "edge",
)

# Attributes that can feed a dice pool; edge is spent, not rolled.
POOL_ATTRIBUTES: frozenset[str] = frozenset(BASE_ATTRIBUTES) - {"edge"}


# =============================================================================
# Sheet Components
# =============================================================================


class SheetModel(BaseModel):
    """Base class for mutable sheet parts."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
    )


class Skills(SheetModel):
    """Active skills grouped by category."""

    combat: SkillMap = Field(default_factory=dict)
    physical: SkillMap = Field(default_factory=dict)
    social: SkillMap = Field(default_factory=dict)
    technical: SkillMap = Field(default_factory=dict)

    def all_active(self) -> dict[str, int]:
        """Merge the four categories into one name -> rating map.

        Later categories win on duplicate names, in the order combat,
        physical, social, technical.
        """
        merged: dict[str, int] = {}
        for category in (self.combat, self.physical, self.social, self.technical):
            merged.update(category)
        return merged


class Item(SheetModel):
    """An inventory entry."""

    name: str
    quantity: int = Field(default=1, ge=0, le=NUYEN_MAX)
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def default_none_description(cls, v: Any) -> str:
        """Convert None to empty string."""
        return "" if v is None else v


class Contact(SheetModel):
    """A person the character can call on."""

    name: str
    description: str = ""
    loyalty: ContactRating = 1
    connection: ContactRating = 1


class Quality(SheetModel):
    """A positive or negative quality."""

    name: str
    positive: bool


class MatrixAttributes(SheetModel):
    """Cyberdeck attributes for deckers and technomancers."""

    attack: U8 = 0
    sleaze: U8 = 0
    data_processing: U8 = 0
    firewall: U8 = 0


class Limits(SheetModel):
    physical: U8 = 1
    mental: U8 = 1
    social: U8 = 1


class Monitors(SheetModel):
    physical: U8 = 9
    stun: U8 = 9


class Essence(SheetModel):
    current: float = Field(default=ESSENCE_MAX, ge=0.0, le=ESSENCE_MAX)
    max: float = Field(default=ESSENCE_MAX, ge=0.0, le=ESSENCE_MAX)


class DerivedAttributes(SheetModel):
    """Secondary attributes computed from the base attributes.

    Attributes:
        initiative: Initiative score and number of initiative dice.
        limits: Physical, mental and social limits.
        monitors: Physical and stun condition monitor boxes.
        essence: Current and maximum essence.
        edge_points: Edge points available to spend.
        armor: Armor rating.
    """

    initiative: tuple[int, int] = (2, 1)
    limits: Limits = Field(default_factory=Limits)
    monitors: Monitors = Field(default_factory=Monitors)
    essence: Essence = Field(default_factory=Essence)
    edge_points: U8 = 1
    armor: U8 = 0


# =============================================================================
# Character Sheet
# =============================================================================


class CharacterSheet(SheetModel):
    """A complete Shadowrun character.

    ``name`` identifies the character in the game roster. Every other field
    may be changed through attribute updates, except the derived attributes
    which follow the base attributes.
    """

    # Personal information
    name: str = Field(min_length=1)
    race: Race
    gender: str = ""
    backstory: str = ""
    main: bool = False
    lifestyle: str = "Street"

    # Base attributes
    body: AttributeRating = 1
    agility: AttributeRating = 1
    reaction: AttributeRating = 1
    strength: AttributeRating = 1
    willpower: AttributeRating = 1
    logic: AttributeRating = 1
    intuition: AttributeRating = 1
    charisma: AttributeRating = 1
    edge: AttributeRating = 1
    magic: U8 | None = None
    resonance: U8 | None = None

    derived_attributes: DerivedAttributes = Field(default_factory=DerivedAttributes)

    # Skills and knowledge
    skills: Skills = Field(default_factory=Skills)
    knowledge_skills: SkillMap = Field(default_factory=dict)

    # Economy and social
    nuyen: Nuyen = 0
    contacts: dict[str, Contact] = Field(default_factory=dict)
    qualities: list[Quality] = Field(default_factory=list)
    cyberware: list[str] = Field(default_factory=list)
    bioware: list[str] = Field(default_factory=list)
    inventory: dict[str, Item] = Field(default_factory=dict)
    matrix_attributes: MatrixAttributes | None = None

    def apply_race_modifiers(self) -> None:
        """Apply the metatype's attribute adjustments and caps."""
        if self.race == Race.HUMAN:
            self.edge = min(max(self.edge, 2), 7)
        elif self.race == Race.ELF:
            self.agility = min(self.agility + 1, 7)
            self.charisma = min(self.charisma + 2, 8)
        elif self.race == Race.DWARF:
            self.body = min(self.body + 2, 8)
            self.agility = min(self.agility, 5)
            self.reaction = min(self.reaction, 5)
            self.strength = min(self.strength + 2, 8)
            self.willpower = min(self.willpower + 1, 7)
        elif self.race == Race.ORK:
            self.body = min(self.body + 3, 9)
            self.strength = min(self.strength + 2, 8)
            self.logic = min(self.logic, 5)
            self.charisma = min(self.charisma, 5)
        elif self.race == Race.TROLL:
            self.body = min(self.body + 4, 10)
            self.agility = min(self.agility, 5)
            self.strength = min(self.strength + 4, 10)
            self.logic = min(self.logic, 5)
            self.intuition = min(self.intuition, 5)
            self.charisma = min(self.charisma, 4)

    def update_derived_attributes(self) -> None:
        """Recompute initiative, condition monitors and limits."""
        derived = self.derived_attributes
        derived.initiative = (self.reaction + self.intuition, 1)
        derived.monitors.physical = 8 + (self.body + 1) // 2
        derived.monitors.stun = 8 + (self.willpower + 1) // 2
        derived.limits.physical = math.ceil((self.strength * 2 + self.body + self.reaction) / 3)
        derived.limits.mental = math.ceil((self.logic * 2 + self.intuition + self.willpower) / 3)
        derived.limits.social = math.ceil(
            (self.charisma * 2 + self.willpower + int(derived.essence.current)) / 3
        )

    def get_all_active_skills(self) -> dict[str, int]:
        """Get every active skill regardless of category."""
        return self.skills.all_active()

    def get_dice_pool(self, attribute: str, skill: str) -> int:
        """Calculate the dice pool for an attribute + skill test.

        Args:
            attribute: Attribute name, matched case-insensitively.
            skill: Active skill name, matched exactly.

        Returns:
            Attribute rating plus skill rating; unknown names count as 0.
        """
        attribute_name = attribute.lower()
        attribute_value = getattr(self, attribute_name) if attribute_name in POOL_ATTRIBUTES else 0
        skill_value = self.get_all_active_skills().get(skill, 0)
        return attribute_value + skill_value

    def get_limit(self, limit_type: str) -> int:
        """Get the limit for a test.

        Args:
            limit_type: physical, mental or social (case-insensitive).

        Returns:
            The limit; 0 when the type is not a known limit.
        """
        try:
            kind = LimitType(limit_type.lower())
        except ValueError:
            return 0
        return getattr(self.derived_attributes.limits, kind.value)

    def __str__(self) -> str:
        return f"{self.name} ({self.race})"


# =============================================================================
# Factory Functions
# =============================================================================


def create_character_sheet(
    *,
    name: str,
    race: Race | str,
    gender: str,
    backstory: str,
    main: bool = False,
    attributes: Mapping[str, int] | None = None,
    magic: int | None = 0,
    resonance: int | None = 0,
    skills: Skills | None = None,
    knowledge_skills: Mapping[str, int] | None = None,
    qualities: list[Quality] | None = None,
    nuyen: int = 0,
    inventory: Mapping[str, Item] | None = None,
    contacts: Mapping[str, Contact] | None = None,
) -> CharacterSheet:
    """Create a character with racial modifiers and derived attributes applied.

    Args:
        name: Character name, unique in the roster.
        race: Metatype.
        gender: Free-form gender.
        backstory: Free-form backstory.
        main: Whether this is the player's character.
        attributes: Base attribute ratings by name; missing ones default to 1.
        magic: Magic rating.
        resonance: Resonance rating.
        skills: Active skills.
        knowledge_skills: Knowledge skill ratings by name.
        qualities: Positive and negative qualities.
        nuyen: Starting nuyen.
        inventory: Starting items keyed by name.
        contacts: Contacts keyed by name.

    Returns:
        A fully initialized CharacterSheet.

    Raises:
        pydantic.ValidationError: If any value is out of range.
    """
    base = {attr: (attributes or {}).get(attr, 1) for attr in BASE_ATTRIBUTES}
    sheet = CharacterSheet(
        name=name,
        race=race,
        gender=gender,
        backstory=backstory,
        main=main,
        magic=magic,
        resonance=resonance,
        skills=skills or Skills(),
        knowledge_skills=dict(knowledge_skills or {}),
        qualities=list(qualities or []),
        nuyen=nuyen,
        inventory=dict(inventory or {}),
        contacts=dict(contacts or {}),
        **base,
    )
    sheet.apply_race_modifiers()
    sheet.update_derived_attributes()
    return sheet


def create_dummy_character() -> CharacterSheet:
    """Create the fallback character used when a creation request is unusable."""
    return create_character_sheet(
        name="Dummy Character",
        race=Race.HUMAN,
        gender="Unspecified",
        backstory="This is a dummy character created as a fallback.",
        main=False,
        attributes={attr: 3 for attr in BASE_ATTRIBUTES},
        magic=0,
        resonance=0,
        skills=Skills(
            combat={"Unarmed Combat": 1, "Pistols": 1},
            physical={"Running": 1, "Sneaking": 1},
            social={"Etiquette": 1, "Negotiation": 1},
            technical={"Computer": 1, "First Aid": 1},
        ),
        nuyen=5000,
    )


__all__ = [
    "AttributeRating",
    "SkillRating",
    "ContactRating",
    "U8",
    "Nuyen",
    "SkillMap",
    "Race",
    "LimitType",
    "BASE_ATTRIBUTES",
    "POOL_ATTRIBUTES",
    "Skills",
    "Item",
    "Contact",
    "Quality",
    "MatrixAttributes",
    "Limits",
    "Monitors",
    "Essence",
    "DerivedAttributes",
    "CharacterSheet",
    "create_character_sheet",
    "create_dummy_character",
]
