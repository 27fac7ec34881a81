"""Tests for the character sheet model."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sharad.models.character import (
    CharacterSheet,
    Item,
    Race,
    Skills,
    create_character_sheet,
    create_dummy_character,
)


def _sheet(race: str, **attributes: int) -> CharacterSheet:
    return create_character_sheet(
        name="Test",
        race=race,
        gender="",
        backstory="",
        attributes=attributes,
    )


class TestCharacterSheet:
    """Tests for CharacterSheet validation."""

    def test_minimal_sheet(self) -> None:
        """Test a sheet with only the required fields."""
        sheet = CharacterSheet(name="Ghost", race=Race.ORK)

        assert sheet.body == 1
        assert sheet.lifestyle == "Street"
        assert sheet.matrix_attributes is None
        assert str(sheet) == "Ghost (Ork)"

    def test_empty_name_rejected(self) -> None:
        """Test a character needs a name."""
        with pytest.raises(ValidationError):
            CharacterSheet(name="", race=Race.HUMAN)

    def test_attribute_range_on_assignment(self, street_samurai: CharacterSheet) -> None:
        """Test attribute assignment is range checked."""
        with pytest.raises(ValidationError):
            street_samurai.body = 16

        assert street_samurai.body == 5

    def test_item_description_none(self) -> None:
        """Test a missing item description becomes empty."""
        item = Item(name="Medkit", description=None)

        assert item.description == ""
        assert item.quantity == 1

    def test_json_round_trip(self, street_samurai: CharacterSheet) -> None:
        """Test a sheet survives serialization."""
        restored = CharacterSheet.model_validate_json(street_samurai.model_dump_json())

        assert restored == street_samurai


class TestRaceModifiers:
    """Tests for metatype adjustments."""

    def test_human_edge_floor(self) -> None:
        """Test humans get at least two edge."""
        assert _sheet("Human", edge=1).edge == 2
        assert _sheet("Human", edge=9).edge == 7

    def test_elf(self) -> None:
        """Test elves gain agility and charisma."""
        sheet = _sheet("Elf", agility=3, charisma=7)

        assert sheet.agility == 4
        assert sheet.charisma == 8

    def test_dwarf(self) -> None:
        """Test dwarf bonuses and caps."""
        sheet = _sheet("Dwarf", body=3, agility=6, reaction=6, strength=3, willpower=3)

        assert (sheet.body, sheet.agility, sheet.reaction, sheet.strength, sheet.willpower) == (5, 5, 5, 5, 4)

    def test_ork(self) -> None:
        """Test ork bonuses and caps."""
        sheet = _sheet("Ork", body=7, strength=3, logic=6, charisma=6)

        assert (sheet.body, sheet.strength, sheet.logic, sheet.charisma) == (9, 5, 5, 5)

    def test_troll(self) -> None:
        """Test troll bonuses and caps."""
        sheet = _sheet("Troll", body=5, agility=6, strength=5, logic=6, intuition=6, charisma=6)

        assert (sheet.body, sheet.agility, sheet.strength) == (9, 5, 9)
        assert (sheet.logic, sheet.intuition, sheet.charisma) == (5, 5, 4)


class TestDerivedAttributes:
    """Tests for derived attribute formulas."""

    def test_formulas(self, street_samurai: CharacterSheet) -> None:
        """Test initiative, monitors and limits of a known sheet."""
        derived = street_samurai.derived_attributes

        assert derived.initiative == (9, 1)
        assert derived.monitors.physical == 11
        assert derived.monitors.stun == 10
        assert derived.limits.physical == 6
        assert derived.limits.mental == 4
        assert derived.limits.social == 5

    def test_recompute_after_change(self, street_samurai: CharacterSheet) -> None:
        """Test derived values follow base attributes."""
        street_samurai.body = 9
        street_samurai.update_derived_attributes()

        assert street_samurai.derived_attributes.monitors.physical == 13
        assert street_samurai.derived_attributes.limits.physical == 8


class TestDicePool:
    """Tests for pool and limit lookups."""

    def test_skills_merge_all_groups(self) -> None:
        """Test all active skill groups are searched."""
        skills = Skills(combat={"Pistols": 3}, technical={"Hacking": 5})

        assert skills.all_active() == {"Pistols": 3, "Hacking": 5}

    def test_attribute_case_insensitive(self, street_samurai: CharacterSheet) -> None:
        """Test attribute names ignore case."""
        assert street_samurai.get_dice_pool("AGILITY", "Pistols") == 12

    def test_skill_case_sensitive(self, street_samurai: CharacterSheet) -> None:
        """Test skill names match exactly."""
        assert street_samurai.get_dice_pool("agility", "pistols") == 6

    def test_limit_lookup(self, street_samurai: CharacterSheet) -> None:
        """Test limit types."""
        assert street_samurai.get_limit("Mental") == 4
        assert street_samurai.get_limit("astral") == 0


class TestFactories:
    """Tests for the sheet factories."""

    def test_create_applies_modifiers_and_derived(self) -> None:
        """Test creation runs race modifiers before derived attributes."""
        sheet = _sheet("Troll", body=5, strength=5, reaction=3)

        assert sheet.body == 9
        assert sheet.derived_attributes.limits.physical == 10

    def test_out_of_range_rejected(self) -> None:
        """Test creation validates ratings."""
        with pytest.raises(ValidationError):
            _sheet("Human", body=20)

    def test_dummy_character(self) -> None:
        """Test the fallback character."""
        dummy = create_dummy_character()

        assert dummy.name == "Dummy Character"
        assert dummy.race == Race.HUMAN
        assert dummy.main is False
        assert dummy.nuyen == 5000
        assert dummy.body == 3
        assert dummy.get_dice_pool("agility", "Pistols") == 4
