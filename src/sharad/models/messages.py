"""Messages exchanged with the game master.

``UserMessage`` is what the player's turn looks like on the thread,
``GameMessage`` is the game master's structured answer, and ``Message`` is
one displayed line of the conversation history.
"""

from __future__ import annotations

import json
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from sharad.core.exceptions import GameMessageParseError
from sharad.models.character import CharacterSheet


class MessageType(StrEnum):
    """Who a history line belongs to."""

    USER = "user"
    GAME = "game"
    SYSTEM = "system"


class Message(BaseModel):
    """One line of conversation history."""

    model_config = ConfigDict(frozen=True)

    message_type: MessageType
    content: str


class UserMessage(BaseModel):
    """A player turn with the standing instructions for the game master."""

    model_config = ConfigDict(frozen=True)

    instructions: str
    player_action: str

    def to_ai_format(self) -> str:
        """Serialize the turn as posted on the thread."""
        return self.model_dump_json()


class GameMessage(BaseModel):
    """The game master's answer to a turn.

    Attributes:
        reasoning: Out-of-character reasoning (rules, rolls).
        narration: Text shown to the player.
        character_sheet: Updated snapshot of the main character, if sent.
    """

    model_config = ConfigDict(extra="ignore")

    reasoning: str = ""
    narration: str
    character_sheet: CharacterSheet | None = Field(default=None)

    @classmethod
    def from_text(cls, raw_text: str) -> GameMessage:
        """Parse the final assistant message text.

        Markdown code fences around the JSON object are tolerated.

        Args:
            raw_text: Message text as received from the service.

        Returns:
            The parsed GameMessage.

        Raises:
            GameMessageParseError: If the text is not a valid game message.
        """
        text = _strip_code_fence(raw_text)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GameMessageParseError(raw_text, f"invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise GameMessageParseError(raw_text, "expected a JSON object")

        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise GameMessageParseError(raw_text, errors) from exc


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if not text.startswith("```"):
        return text
    json_lines = []
    in_block = False
    for line in text.split("\n"):
        if line.startswith("```") and not in_block:
            in_block = True
            continue
        elif line.startswith("```") and in_block:
            break
        elif in_block:
            json_lines.append(line)
    return "\n".join(json_lines)


__all__ = [
    "MessageType",
    "Message",
    "UserMessage",
    "GameMessage",
]
