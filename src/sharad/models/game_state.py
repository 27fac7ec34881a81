"""Game state container and the events that change it.

The game state owns the roster of character sheets. Tool handlers never
touch it directly: they emit ``CharacterAdded`` and ``UpdateRequested``
events, and the single writer of the turn folds them in with
``GameState.apply_event``.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from sharad.core.exceptions import UpdateError
from sharad.core.logging import get_logger
from sharad.models.character import CharacterSheet
from sharad.models.updates import CharacterSheetUpdate


logger = get_logger(__name__)


class ConversationHandle(BaseModel):
    """Identifies the remote assistant and thread of one game."""

    model_config = ConfigDict(frozen=True)

    assistant_id: str = Field(min_length=1)
    thread_id: str = Field(min_length=1)


# =============================================================================
# State Events (dispatcher -> state owner)
# =============================================================================


class CharacterAdded(BaseModel):
    """A character was created by a tool call."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["character_added"] = "character_added"
    character: CharacterSheet


class UpdateRequested(BaseModel):
    """An attribute update was requested for a named character."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["update_requested"] = "update_requested"
    character_name: str
    update: CharacterSheetUpdate


StateEvent = Annotated[CharacterAdded | UpdateRequested, Field(discriminator="event_type")]


class StateUpdateResult(BaseModel):
    """Result of applying a state event."""

    success: bool
    message: str
    character_name: str
    attribute: str | None = None


# =============================================================================
# Game State Container
# =============================================================================


class GameState(BaseModel):
    """The complete state of one game.

    Attributes:
        assistant_id: Remote assistant running this game.
        thread_id: Remote conversation thread.
        save_name: Name the game is saved under.
        characters: Roster, keyed by character name.
        main_character_sheet: Latest snapshot of the player's character.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
    )

    assistant_id: str
    thread_id: str
    save_name: str = "Unnamed Run"
    characters: list[CharacterSheet] = Field(default_factory=list)
    main_character_sheet: CharacterSheet | None = None

    @property
    def conversation(self) -> ConversationHandle:
        return ConversationHandle(assistant_id=self.assistant_id, thread_id=self.thread_id)

    def find_character(self, name: str) -> CharacterSheet | None:
        """Find a roster entry by exact name."""
        for character in self.characters:
            if character.name == name:
                return character
        return None

    def upsert_character(self, sheet: CharacterSheet) -> bool:
        """Replace the roster entry with the same name, or append.

        Returns:
            True if an existing entry was replaced.
        """
        for index, character in enumerate(self.characters):
            if character.name == sheet.name:
                self.characters[index] = sheet
                return True
        self.characters.append(sheet)
        return False

    def merge_character(self, sheet: CharacterSheet) -> bool:
        """Merge a snapshot sent by the game master.

        The snapshot replaces the roster entry of the same name (or is
        appended) and always becomes the main character snapshot.

        Returns:
            True if an existing entry was replaced.
        """
        replaced = self.upsert_character(sheet)
        self.main_character_sheet = sheet.model_copy(deep=True)
        logger.info("Character snapshot merged", character=sheet.name, replaced=replaced)
        return replaced

    def apply_event(self, event: CharacterAdded | UpdateRequested) -> StateUpdateResult:
        """Apply a state event emitted by a tool handler.

        An update that fails leaves the sheet untouched and is reported as
        an unsuccessful result; it does not raise.
        """
        if isinstance(event, CharacterAdded):
            sheet = event.character
            replaced = self.upsert_character(sheet)
            if sheet.main:
                self.main_character_sheet = sheet.model_copy(deep=True)
            logger.info("Character added", character=sheet.name, main=sheet.main, replaced=replaced)
            return StateUpdateResult(
                success=True,
                message=f"{sheet.name} joined the roster",
                character_name=sheet.name,
            )

        update = event.update
        character = self.find_character(event.character_name)
        if character is None:
            logger.warning("Update for unknown character", character=event.character_name)
            return StateUpdateResult(
                success=False,
                message=f"Character '{event.character_name}' not found",
                character_name=event.character_name,
                attribute=update.attribute,
            )

        try:
            update.apply_to(character)
        except UpdateError as exc:
            logger.warning(
                "Character update rejected",
                character=event.character_name,
                attribute=update.attribute,
                error=str(exc),
            )
            return StateUpdateResult(
                success=False,
                message=str(exc),
                character_name=event.character_name,
                attribute=update.attribute,
            )

        character.update_derived_attributes()
        # A renamed character keeps its main status through the update.
        main = self.main_character_sheet
        if main is not None and main.name in (event.character_name, character.name):
            self.main_character_sheet = character.model_copy(deep=True)

        return StateUpdateResult(
            success=True,
            message=f"{update.operation.kind.value} {update.attribute} applied",
            character_name=character.name,
            attribute=update.attribute,
        )


__all__ = [
    "ConversationHandle",
    "CharacterAdded",
    "UpdateRequested",
    "StateEvent",
    "StateUpdateResult",
    "GameState",
]
