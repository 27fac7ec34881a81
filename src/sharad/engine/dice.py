"""Shadowrun dice pool resolution.

A test rolls a pool of six-sided dice. Every 5 or 6 is a hit, every 6
adds one more die to the pool (Rule of Six), and too many ones make the
roll glitch. Edge can be spent to reroll failures or add dice.

Each die is drawn through a ``die`` callable so that tests can script the
faces. The default draws from the d20 library.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import d20
from pydantic import BaseModel, ConfigDict, Field

from sharad.core.constants import DIE_FACES, EXPLODING_FACE, GLITCH_FACE, HIT_THRESHOLD
from sharad.core.exceptions import CharacterNotFoundError, InvalidEdgeActionError
from sharad.core.logging import get_logger


if TYPE_CHECKING:
    from sharad.models.game_state import GameState


logger = get_logger(__name__)

DieRoller = Callable[[], int]


def roll_die() -> int:
    """Roll a single six-sided die."""
    return d20.roll(f"1d{DIE_FACES}").total


class EdgeActionKind(StrEnum):
    """Ways to spend edge on a roll."""

    REROLL_FAILURES = "RerollFailures"
    ADD_EXTRA_DICE = "AddExtraDice"
    PUSH_THE_LIMIT = "PushTheLimit"


@dataclass(frozen=True)
class EdgeAction:
    """An edge action with its parameter.

    Attributes:
        kind: The action.
        extra_dice: Dice added by AddExtraDice; 0 for the other actions.
    """

    kind: EdgeActionKind
    extra_dice: int = 0

    @classmethod
    def parse(cls, name: str | None, extra_dice: int | None = None) -> EdgeAction | None:
        """Parse an edge action as sent in a roll request.

        AddExtraDice without a dice count is treated as no edge action.

        Raises:
            InvalidEdgeActionError: If the name is not a known action.
        """
        if name is None:
            return None
        try:
            kind = EdgeActionKind(name)
        except ValueError as exc:
            raise InvalidEdgeActionError(name) from exc
        if kind == EdgeActionKind.ADD_EXTRA_DICE:
            if extra_dice is None:
                return None
            return cls(kind=kind, extra_dice=extra_dice)
        return cls(kind=kind)


class DiceRollResult(BaseModel):
    """Outcome of a dice pool roll.

    Attributes:
        dice_results: Every face rolled, explosions right after the 6 that
            triggered them.
        hits: Hits kept after the limit.
        success: Whether the test succeeded.
        glitch: More than half of the pool showed ones.
        critical_glitch: A glitch without hits.
        critical_success: At least twice the threshold in hits.
    """

    model_config = ConfigDict(frozen=True)

    dice_results: list[int]
    hits: int
    success: bool
    glitch: bool
    critical_glitch: bool
    critical_success: bool


def _roll_chain(die: DieRoller) -> list[int]:
    """Roll one die plus every die its sixes trigger."""
    chain = [die()]
    while chain[-1] == EXPLODING_FACE:
        chain.append(die())
    return chain


def roll(
    pool: int,
    limit: int | None = None,
    threshold: int | None = None,
    edge: EdgeAction | None = None,
    *,
    die: DieRoller | None = None,
) -> DiceRollResult:
    """Roll a dice pool.

    Args:
        pool: Number of dice before explosions.
        limit: Maximum number of hits kept.
        threshold: Hits needed to succeed.
        edge: Optional edge action.
        die: Source of single die faces; defaults to roll_die.

    Returns:
        The resolved DiceRollResult.
    """
    draw = die or roll_die
    chains = [_roll_chain(draw) for _ in range(max(pool, 0))]

    if edge is not None:
        if edge.kind == EdgeActionKind.REROLL_FAILURES:
            chains = [_roll_chain(draw) if chain[0] < HIT_THRESHOLD else chain for chain in chains]
        elif edge.kind == EdgeActionKind.ADD_EXTRA_DICE:
            chains.extend(_roll_chain(draw) for _ in range(edge.extra_dice))
        # PushTheLimit leaves the dice alone; the limit still applies.

    dice_results = [face for chain in chains for face in chain]
    hits = sum(1 for face in dice_results if face >= HIT_THRESHOLD)
    ones = sum(1 for face in dice_results if face == GLITCH_FACE)

    if limit is not None:
        hits = min(hits, limit)

    glitch = ones > pool // 2
    critical_glitch = glitch and hits == 0
    critical_success = threshold is not None and hits >= threshold * 2
    success = hits >= threshold if threshold is not None else hits > 0

    result = DiceRollResult(
        dice_results=dice_results,
        hits=hits,
        success=success,
        glitch=glitch,
        critical_glitch=critical_glitch,
        critical_success=critical_success,
    )

    logger.info(
        "Dice rolled",
        pool=pool,
        limit=limit,
        threshold=threshold,
        edge=edge.kind.value if edge else None,
        hits=hits,
        glitch=glitch,
    )

    return result


# =============================================================================
# Character Tests
# =============================================================================


class DiceRollRequest(BaseModel):
    """An attribute + skill test requested by the game master."""

    model_config = ConfigDict(extra="ignore")

    character_name: str
    attribute: str
    skill: str
    limit_type: str
    threshold: int | None = Field(default=None, ge=0)
    edge_action: str | None = None
    extra_dice: int | None = Field(default=None, ge=0)


def perform_dice_roll(
    request: DiceRollRequest,
    game_state: GameState,
    *,
    die: DieRoller | None = None,
) -> DiceRollResult:
    """Roll a test for a character of the roster.

    Args:
        request: The test to roll.
        game_state: State holding the roster.
        die: Source of single die faces.

    Returns:
        The resolved DiceRollResult.

    Raises:
        CharacterNotFoundError: If no roster entry has the requested name.
        InvalidEdgeActionError: If the edge action is unknown.
    """
    character = game_state.find_character(request.character_name)
    if character is None:
        raise CharacterNotFoundError(request.character_name)

    pool = character.get_dice_pool(request.attribute, request.skill)
    limit = character.get_limit(request.limit_type)
    edge = EdgeAction.parse(request.edge_action, request.extra_dice)

    logger.debug(
        "Rolling test",
        character=character.name,
        attribute=request.attribute,
        skill=request.skill,
        pool=pool,
        limit=limit,
    )

    return roll(pool, limit, request.threshold, edge, die=die)


__all__ = [
    "DieRoller",
    "roll_die",
    "EdgeActionKind",
    "EdgeAction",
    "DiceRollResult",
    "roll",
    "DiceRollRequest",
    "perform_dice_roll",
]
