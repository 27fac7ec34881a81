"""Game session - the owner of a game's state.

The session wires the assistant service, the tool dispatcher and the turn
orchestrator around one ``GameState``, serializes turns, and hands the UI
the event streams it renders.

Example:
    >>> service = OpenAIAssistantService()
    >>> session = await GameSession.new_game(service, save_name="Seattle 2075")
    >>> message = await session.send_turn("I check the alley for drones.")
    >>> print(message.narration)
"""

from __future__ import annotations

import asyncio

from pydantic import ValidationError as PydanticValidationError

from sharad.core.config import Settings, get_settings
from sharad.core.constants import HISTORY_PAGE_SIZE
from sharad.core.exceptions import ConversationNotInitializedError, GameMessageParseError
from sharad.core.logging import get_logger
from sharad.dm.assistant import AssistantService, ThreadMessage
from sharad.dm.dispatcher import ToolDispatcher
from sharad.dm.events import EventChannel, ImageGenerated
from sharad.dm.imager import ImageService
from sharad.dm.orchestrator import TurnOrchestrator
from sharad.dm.prompts import OPENING_MESSAGE, build_instructions
from sharad.dm.tools.definitions import get_tools_as_openai_schema
from sharad.engine.dice import DieRoller
from sharad.models.character import CharacterSheet
from sharad.models.game_state import CharacterAdded, GameState, UpdateRequested
from sharad.models.messages import GameMessage, Message, MessageType, UserMessage


logger = get_logger(__name__)


class GameSession:
    """One running game.

    Attributes:
        state: The game state; written only by this session's turns.
    """

    def __init__(
        self,
        service: AssistantService,
        state: GameState,
        *,
        settings: Settings | None = None,
        image_service: ImageService | None = None,
        die: DieRoller | None = None,
    ) -> None:
        if not state.assistant_id or not state.thread_id:
            raise ConversationNotInitializedError(
                "Game state has no conversation",
                details={"save_name": state.save_name},
            )
        self._settings = settings or get_settings()
        self._service = service
        self.state = state
        self._dispatcher = ToolDispatcher(image_service=image_service, die=die)
        self._orchestrator = TurnOrchestrator(service, self._dispatcher, settings=self._settings.turn)
        self._lock = asyncio.Lock()

    @classmethod
    async def new_game(
        cls,
        service: AssistantService,
        *,
        save_name: str,
        assistant_id: str | None = None,
        settings: Settings | None = None,
        image_service: ImageService | None = None,
        die: DieRoller | None = None,
    ) -> GameSession:
        """Start a new game on a fresh thread.

        Args:
            service: Assistant service to play on.
            save_name: Name the game is saved under.
            assistant_id: Existing game master assistant. A new one is
                created when omitted.
            settings: Application settings.
            image_service: Portrait generator; portraits are disabled without one.
            die: Die source for dice rolls.

        Returns:
            A session with an empty roster.
        """
        settings = settings or get_settings()
        if assistant_id is None:
            assistant_id = await service.create_assistant(
                name=settings.ai.assistant_name,
                model=settings.ai.assistant_model,
                instructions=build_instructions(settings.language),
                tools=get_tools_as_openai_schema(),
            )

        thread_id = await service.create_thread()
        await service.append_message(thread_id, "user", OPENING_MESSAGE)

        state = GameState(assistant_id=assistant_id, thread_id=thread_id, save_name=save_name)
        logger.info("New game started", save_name=save_name, thread_id=thread_id)
        return cls(service, state, settings=settings, image_service=image_service, die=die)

    @classmethod
    def resume(
        cls,
        service: AssistantService,
        state: GameState,
        *,
        settings: Settings | None = None,
        image_service: ImageService | None = None,
        die: DieRoller | None = None,
    ) -> GameSession:
        """Continue a saved game."""
        logger.info("Game resumed", save_name=state.save_name, thread_id=state.thread_id)
        return cls(service, state, settings=settings, image_service=image_service, die=die)

    async def send_turn(self, player_action: str) -> GameMessage:
        """Play one turn; concurrent calls are run one after another."""
        async with self._lock:
            return await self._orchestrator.run_turn(self.state, player_action)

    def roster(self) -> list[CharacterSheet]:
        """Snapshot of every character in the game."""
        return [character.model_copy(deep=True) for character in self.state.characters]

    @property
    def main_character(self) -> CharacterSheet | None:
        return self.state.main_character_sheet

    @property
    def character_added(self) -> EventChannel[CharacterAdded]:
        return self._orchestrator.character_added

    @property
    def update_requests(self) -> EventChannel[UpdateRequested]:
        return self._orchestrator.update_requests

    @property
    def images(self) -> EventChannel[ImageGenerated]:
        return self._dispatcher.images

    async def wait_for_images(self) -> None:
        await self._dispatcher.wait_for_images()

    async def history(self) -> list[Message]:
        """Read the whole conversation, oldest message first."""
        messages: list[Message] = []
        after: str | None = None
        while True:
            page = await self._service.list_messages(
                self.state.thread_id,
                limit=HISTORY_PAGE_SIZE,
                order="asc",
                after=after,
            )
            messages.extend(_to_history_line(message) for message in page.messages)
            if not page.has_more or page.last_id is None:
                return messages
            after = page.last_id


def _to_history_line(message: ThreadMessage) -> Message:
    """Show player turns by their action and game master answers by their narration."""
    if message.role == "user":
        try:
            content = UserMessage.model_validate_json(message.text).player_action
        except PydanticValidationError:
            content = message.text
        return Message(message_type=MessageType.USER, content=content)

    try:
        content = GameMessage.from_text(message.text).narration
    except GameMessageParseError:
        content = message.text
    return Message(message_type=MessageType.GAME, content=content)


__all__ = [
    "GameSession",
]
