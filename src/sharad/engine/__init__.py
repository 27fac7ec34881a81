"""Game mechanics engine: Shadowrun dice pool resolution."""

from sharad.engine.dice import (
    DiceRollRequest,
    DiceRollResult,
    EdgeAction,
    EdgeActionKind,
    perform_dice_roll,
    roll,
    roll_die,
)


__all__ = [
    "DiceRollRequest",
    "DiceRollResult",
    "EdgeAction",
    "EdgeActionKind",
    "perform_dice_roll",
    "roll",
    "roll_die",
]
