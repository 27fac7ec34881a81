"""Tests for dice pool resolution."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import pytest

from sharad.core.exceptions import CharacterNotFoundError, InvalidEdgeActionError
from sharad.engine.dice import (
    DiceRollRequest,
    EdgeAction,
    EdgeActionKind,
    perform_dice_roll,
    roll,
)
from sharad.models.game_state import GameState


DieFactory = Callable[[Iterable[int]], Callable[[], int]]


class TestRoll:
    """Tests for the roll function."""

    def test_all_ones_is_critical_glitch(self, make_die: DieFactory) -> None:
        """Test a pool of ten ones."""
        result = roll(10, die=make_die([1] * 10))

        assert result.hits == 0
        assert result.glitch is True
        assert result.critical_glitch is True
        assert result.success is False

    def test_threshold_critical_success(self, make_die: DieFactory) -> None:
        """Test twice the threshold in hits is a critical success."""
        result = roll(5, threshold=2, die=make_die([5, 5, 5, 5, 2]))

        assert result.hits == 4
        assert result.success is True
        assert result.critical_success is True

    def test_threshold_plain_success(self, make_die: DieFactory) -> None:
        """Test hits between threshold and twice the threshold."""
        result = roll(5, threshold=2, die=make_die([5, 5, 5, 2, 2]))

        assert result.hits == 3
        assert result.success is True
        assert result.critical_success is False

    def test_threshold_missed(self, make_die: DieFactory) -> None:
        """Test fewer hits than the threshold fails."""
        result = roll(3, threshold=2, die=make_die([5, 2, 3]))

        assert result.hits == 1
        assert result.success is False

    def test_six_explodes(self, make_die: DieFactory) -> None:
        """Test a six adds one die right after it."""
        result = roll(1, die=make_die([6, 3]))

        assert result.dice_results == [6, 3]
        assert result.hits == 1

    def test_explosions_chain(self, make_die: DieFactory) -> None:
        """Test explosions follow the die that triggered them."""
        result = roll(2, die=make_die([6, 6, 2, 4]))

        assert result.dice_results == [6, 6, 2, 4]
        assert result.hits == 2

    def test_limit_caps_hits(self, make_die: DieFactory) -> None:
        """Test the limit caps the hits kept."""
        result = roll(4, limit=2, die=make_die([5, 5, 5, 5]))

        assert result.hits == 2
        assert result.dice_results == [5, 5, 5, 5]

    def test_no_threshold_success_needs_a_hit(self, make_die: DieFactory) -> None:
        """Test success without threshold means at least one hit."""
        assert roll(2, die=make_die([5, 1])).success is True
        assert roll(2, die=make_die([2, 3])).success is False

    def test_glitch_with_hits_is_not_critical(self, make_die: DieFactory) -> None:
        """Test a glitch with hits is not a critical glitch."""
        result = roll(3, die=make_die([1, 1, 5]))

        assert result.glitch is True
        assert result.critical_glitch is False

    def test_half_ones_is_not_a_glitch(self, make_die: DieFactory) -> None:
        """Test exactly half the pool showing ones does not glitch."""
        result = roll(4, die=make_die([1, 1, 3, 4]))

        assert result.glitch is False

    def test_empty_pool(self) -> None:
        """Test a pool of zero dice."""
        result = roll(0, die=lambda: pytest.fail("no die should be rolled"))

        assert result.dice_results == []
        assert result.hits == 0
        assert result.glitch is False

    def test_default_die(self) -> None:
        """Test rolling with the d20 backed die."""
        result = roll(8)

        assert len(result.dice_results) >= 8
        assert all(1 <= face <= 6 for face in result.dice_results)


class TestEdgeActions:
    """Tests for spending edge on a roll."""

    def test_reroll_failures(self, make_die: DieFactory) -> None:
        """Test failed dice are rolled again."""
        edge = EdgeAction(kind=EdgeActionKind.REROLL_FAILURES)
        result = roll(3, edge=edge, die=make_die([5, 1, 2, 6, 3, 4]))

        assert result.dice_results == [5, 6, 3, 4]
        assert result.hits == 2
        assert result.glitch is False

    def test_add_extra_dice(self, make_die: DieFactory) -> None:
        """Test extra dice are added to the pool."""
        edge = EdgeAction(kind=EdgeActionKind.ADD_EXTRA_DICE, extra_dice=2)
        result = roll(2, edge=edge, die=make_die([1, 2, 5, 6, 1]))

        assert result.dice_results == [1, 2, 5, 6, 1]
        assert result.hits == 2
        assert result.glitch is True

    def test_push_the_limit_keeps_the_limit(self, make_die: DieFactory) -> None:
        """Test PushTheLimit does not lift the limit."""
        edge = EdgeAction(kind=EdgeActionKind.PUSH_THE_LIMIT)
        result = roll(3, limit=1, edge=edge, die=make_die([5, 5, 5]))

        assert result.hits == 1

    def test_parse_known_actions(self) -> None:
        """Test parsing edge action names."""
        assert EdgeAction.parse("RerollFailures") == EdgeAction(kind=EdgeActionKind.REROLL_FAILURES)
        assert EdgeAction.parse("AddExtraDice", 3) == EdgeAction(kind=EdgeActionKind.ADD_EXTRA_DICE, extra_dice=3)

    def test_parse_none(self) -> None:
        """Test no edge action."""
        assert EdgeAction.parse(None) is None

    def test_add_extra_dice_without_count(self) -> None:
        """Test AddExtraDice without a count is no edge action."""
        assert EdgeAction.parse("AddExtraDice") is None

    def test_parse_unknown_action(self) -> None:
        """Test unknown names are rejected."""
        with pytest.raises(InvalidEdgeActionError) as exc_info:
            EdgeAction.parse("Overdrive")

        assert exc_info.value.message == "Invalid edge action"


class TestPerformDiceRoll:
    """Tests for character tests."""

    def test_attribute_plus_skill(self, game_state: GameState, make_die: DieFactory) -> None:
        """Test the pool is attribute plus skill, capped by the limit."""
        request = DiceRollRequest(
            character_name="Kaze",
            attribute="Agility",
            skill="Pistols",
            limit_type="Physical",
        )

        result = perform_dice_roll(request, game_state, die=make_die([5] * 12))

        assert len(result.dice_results) == 12
        assert result.hits == 6

    def test_unknown_character(self, game_state: GameState) -> None:
        """Test rolling for a missing character fails."""
        request = DiceRollRequest(character_name="Nobody", attribute="body", skill="Running", limit_type="physical")

        with pytest.raises(CharacterNotFoundError):
            perform_dice_roll(request, game_state)

    def test_unknown_names_count_as_zero(self, game_state: GameState, make_die: DieFactory) -> None:
        """Test an unknown attribute adds no dice and an unknown limit keeps no hits."""
        request = DiceRollRequest(
            character_name="Kaze",
            attribute="luck",
            skill="Sneaking",
            limit_type="astral",
        )

        result = perform_dice_roll(request, game_state, die=make_die([5, 5, 5]))

        assert result.dice_results == [5, 5, 5]
        assert result.hits == 0
        assert result.success is False

    def test_edge_is_not_a_pool_attribute(self, game_state: GameState, make_die: DieFactory) -> None:
        """Test edge does not feed the dice pool."""
        request = DiceRollRequest(character_name="Kaze", attribute="edge", skill="Blades", limit_type="physical")

        result = perform_dice_roll(request, game_state, die=make_die([2, 2, 2, 2]))

        assert len(result.dice_results) == 4

    def test_invalid_edge_action(self, game_state: GameState) -> None:
        """Test an unknown edge action is rejected."""
        request = DiceRollRequest(
            character_name="Kaze",
            attribute="agility",
            skill="Pistols",
            limit_type="physical",
            edge_action="Overdrive",
        )

        with pytest.raises(InvalidEdgeActionError):
            perform_dice_roll(request, game_state)
