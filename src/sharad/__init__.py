"""Sharad - a Shadowrun client with an AI game master.

The game master runs on a remote assistant; Sharad keeps the mechanical
model of the game (characters, dice, inventory) and drives every turn.
"""

__version__ = "0.2.9"

from sharad.dm.session import GameSession
from sharad.models.game_state import GameState
from sharad.models.messages import GameMessage


__all__ = [
    "__version__",
    "GameSession",
    "GameState",
    "GameMessage",
]
