"""Turn orchestration - one player action, driven to completion.

A turn walks through these phases:

1. SENDING: the player's action is posted on the thread and a run is created.
2. POLLING: the run is polled until it completes, fails, times out or asks
   for tool outputs.
3. REQUIRES_ACTION: every tool call is dispatched in order, state events
   are applied after each call, and all outputs are submitted together.
4. COMPLETED: the latest assistant message is parsed into a GameMessage and
   an embedded character sheet is merged into the roster.

Python owns the game state. The assistant only narrates and requests
mechanical actions through tools.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import NoReturn

from sharad.core.config import TurnSettings, get_settings
from sharad.core.constants import SUBMIT_TOOL_OUTPUTS
from sharad.core.exceptions import (
    GameEngineError,
    NoMessageFoundError,
    ProtocolError,
    RunFailedError,
    RunTimeoutError,
    SharadError,
    ToolDispatchError,
    UnknownToolError,
)
from sharad.core.logging import bind_context, get_logger, unbind_context
from sharad.dm.assistant import AssistantService, RunSnapshot, RunStatus, ToolOutput
from sharad.dm.dispatcher import ToolDispatcher
from sharad.dm.events import EventChannel
from sharad.dm.prompts import TURN_INSTRUCTIONS
from sharad.models.game_state import CharacterAdded, GameState, UpdateRequested
from sharad.models.messages import GameMessage, UserMessage


logger = get_logger(__name__)


class TurnPhase(StrEnum):
    """Phases of a single turn."""

    SENDING = "sending"
    RUN_CREATED = "run_created"
    POLLING = "polling"
    REQUIRES_ACTION = "requires_action"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class TurnOrchestrator:
    """Drives one turn at a time against the assistant service.

    Only one run may be outstanding per thread; callers serialize turns.

    Attributes:
        phase: Phase of the current (or last) turn.
        character_added: Characters that joined the roster during turns.
        update_requests: Attribute updates applied during turns.
    """

    def __init__(
        self,
        service: AssistantService,
        dispatcher: ToolDispatcher,
        *,
        settings: TurnSettings | None = None,
        character_added: EventChannel[CharacterAdded] | None = None,
        update_requests: EventChannel[UpdateRequested] | None = None,
    ) -> None:
        self._service = service
        self._dispatcher = dispatcher
        self._settings = settings or get_settings().turn
        self.character_added: EventChannel[CharacterAdded] = character_added or EventChannel("character_added")
        self.update_requests: EventChannel[UpdateRequested] = update_requests or EventChannel("update_requests")
        self.phase: TurnPhase | None = None

    def _transition(self, phase: TurnPhase, **context: object) -> None:
        self.phase = phase
        logger.info("Turn phase", phase=phase.value, **context)

    async def run_turn(
        self,
        game_state: GameState,
        player_action: str,
        *,
        instructions: str = TURN_INSTRUCTIONS,
    ) -> GameMessage:
        """Play one turn.

        Args:
            game_state: State of the game; updated in place.
            player_action: What the player does.
            instructions: Standing instructions sent with the action.

        Returns:
            The game master's parsed answer.

        Raises:
            AIConnectionError: If the service cannot be reached.
            RunFailedError: If the run ends in a failure status.
            RunTimeoutError: If the run does not finish in time.
            ProtocolError: If the run asks for something the client cannot do.
            UnknownToolError: If the assistant calls a tool that does not exist.
            GameMessageParseError: If the final message is not a game message.
        """
        thread_id = game_state.thread_id
        bind_context(thread_id=thread_id)
        try:
            self._transition(TurnPhase.SENDING)
            message = UserMessage(instructions=instructions, player_action=player_action)
            await self._service.append_message(thread_id, "user", message.to_ai_format())
            run = await self._service.create_run(thread_id, game_state.assistant_id)

            bind_context(run_id=run.id)
            self._transition(TurnPhase.RUN_CREATED, status=run.status.value)

            await self._wait_for_completion(game_state, run)
            self._transition(TurnPhase.COMPLETED)

            raw_text = await self._latest_message(thread_id)
            game_message = GameMessage.from_text(raw_text)
            if game_message.character_sheet is not None:
                game_state.merge_character(game_message.character_sheet)
            return game_message
        finally:
            unbind_context("thread_id", "run_id")

    async def _wait_for_completion(self, game_state: GameState, run: RunSnapshot) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._settings.turn_timeout_seconds
        snapshot = run
        self._transition(TurnPhase.POLLING)

        while True:
            status = snapshot.status

            if status == RunStatus.COMPLETED:
                return

            if status.is_failure:
                self._transition(TurnPhase.FAILED, status=status.value)
                await self._cancel_quietly(snapshot)
                raise RunFailedError(f"Run ended with status {status.value}", status=status.value)

            if loop.time() >= deadline:
                self._transition(TurnPhase.TIMED_OUT)
                await self._cancel_quietly(snapshot)
                raise RunTimeoutError(
                    "Run did not complete in time",
                    timeout_seconds=self._settings.turn_timeout_seconds,
                )

            if status == RunStatus.REQUIRES_ACTION:
                self._transition(TurnPhase.REQUIRES_ACTION)
                outputs = await self._handle_required_action(game_state, snapshot)
                snapshot = await self._service.submit_tool_outputs(snapshot.thread_id, snapshot.id, outputs)
                self._transition(TurnPhase.POLLING, submitted=len(outputs))
                continue

            await asyncio.sleep(self._settings.poll_interval_seconds)
            snapshot = await self._service.get_run(snapshot.thread_id, snapshot.id)
            logger.debug("Run polled", status=snapshot.status.value)

    async def _handle_required_action(self, game_state: GameState, run: RunSnapshot) -> list[ToolOutput]:
        action = run.required_action
        if action is None or action.type != SUBMIT_TOOL_OUTPUTS or not action.tool_calls:
            await self._fail_protocol(run, "Run requires an action without tool calls")
        elif len(action.tool_calls) > self._settings.max_tool_calls_per_batch:
            await self._fail_protocol(run, f"Run requested {len(action.tool_calls)} tool calls in one batch")

        outputs: list[ToolOutput] = []
        for call in action.tool_calls:
            try:
                output = self._dispatcher.dispatch(call.function_name, call.arguments, game_state)
            except UnknownToolError:
                self._transition(TurnPhase.FAILED, tool=call.function_name)
                await self._cancel_quietly(run)
                raise
            except (ToolDispatchError, GameEngineError) as exc:
                logger.warning("Tool call failed", tool=call.function_name, error=str(exc))
                output = f"Error: {exc}"

            self._apply_state_events(game_state)
            outputs.append(ToolOutput(tool_call_id=call.id, output=output))

        return outputs

    def _apply_state_events(self, game_state: GameState) -> None:
        for event in self._dispatcher.state_events.drain():
            result = game_state.apply_event(event)
            if not result.success:
                logger.warning(
                    "State event not applied",
                    character=result.character_name,
                    attribute=result.attribute,
                    reason=result.message,
                )
                continue
            if isinstance(event, CharacterAdded):
                self.character_added.publish(event)
            else:
                self.update_requests.publish(event)

    async def _fail_protocol(self, run: RunSnapshot, message: str) -> NoReturn:
        self._transition(TurnPhase.FAILED, reason=message)
        await self._cancel_quietly(run)
        raise ProtocolError(message, details={"run_id": run.id})

    async def _cancel_quietly(self, run: RunSnapshot) -> None:
        """Request cancellation; a failed request is logged and ignored."""
        try:
            await self._service.cancel_run(run.thread_id, run.id)
        except SharadError as exc:
            logger.warning("Run cancel failed", run_id=run.id, error=str(exc))

    async def _latest_message(self, thread_id: str) -> str:
        page = await self._service.list_messages(thread_id, limit=1, order="desc")
        if not page.messages or page.messages[0].role != "assistant" or not page.messages[0].text:
            raise NoMessageFoundError("No assistant message found", details={"thread_id": thread_id})
        return page.messages[0].text


__all__ = [
    "TurnPhase",
    "TurnOrchestrator",
]
