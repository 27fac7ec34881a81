"""Tool call dispatch.

The dispatcher turns one tool call of the game master into a textual
result. It reads the game state but never writes it: character creations
and attribute updates are published as events on the state channel, and
portraits arrive later on the image channel.

Error policy per tool:

- ``create_character_sheet`` falls back to a dummy character.
- ``perform_dice_roll`` reports failures as ``"Error: ..."`` text.
- Every other tool raises a ToolDispatchError or GameEngineError subclass
  that the orchestrator reports back as the call's output.
- An unknown tool name raises UnknownToolError.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sharad.core.constants import IMAGE_IN_PROGRESS
from sharad.core.exceptions import (
    CharacterNotFoundError,
    InvalidOperationError,
    SharadError,
    ToolArgumentError,
    ToolDispatchError,
    UnknownToolError,
)
from sharad.core.logging import get_logger
from sharad.dm.events import EventChannel, ImageGenerated
from sharad.dm.imager import ImageService
from sharad.dm.tools.requests import (
    AugmentationsRequest,
    BasicAttributesRequest,
    CharacterCreationRequest,
    ContactsRequest,
    ImageRequest,
    InventoryRequest,
    MatrixAttributesRequest,
    QualitiesRequest,
    SkillsRequest,
)
from sharad.engine.dice import DiceRollRequest, DieRoller, perform_dice_roll
from sharad.models.character import create_dummy_character
from sharad.models.game_state import CharacterAdded, GameState, StateEvent, UpdateRequested
from sharad.models.updates import (
    CharacterSheetUpdate,
    ContactMapValue,
    ItemMapValue,
    MatrixAttributesValue,
    QualityListValue,
    SkillMapValue,
    SkillsValue,
    StringListValue,
    UpdateOperation,
    UpdateOperationKind,
    parse_character_value,
)


logger = get_logger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)
ToolArguments = str | Mapping[str, Any]


def decode_arguments(tool_name: str, arguments: ToolArguments) -> dict[str, Any]:
    """Decode tool arguments into a JSON object.

    Raises:
        ToolArgumentError: If the arguments are not a JSON object.
    """
    if isinstance(arguments, str):
        try:
            decoded = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as exc:
            raise ToolArgumentError(
                f"Arguments are not valid JSON: {exc}",
                tool_name=tool_name,
            ) from exc
    else:
        decoded = dict(arguments)

    if not isinstance(decoded, dict):
        raise ToolArgumentError("Arguments must be a JSON object", tool_name=tool_name)
    return decoded


def parse_operation(tool_name: str, raw: str) -> UpdateOperationKind:
    """Parse an operation name; only Add, Remove and Modify are accepted.

    Raises:
        InvalidOperationError: If the name is anything else.
    """
    try:
        return UpdateOperationKind(raw)
    except ValueError as exc:
        raise InvalidOperationError(
            f"Invalid operation '{raw}', expected Add, Remove or Modify",
            tool_name=tool_name,
        ) from exc


class ToolDispatcher:
    """Executes the game master's tool calls.

    Attributes:
        state_events: Channel receiving CharacterAdded and UpdateRequested.
        images: Channel receiving finished portraits.
    """

    def __init__(
        self,
        *,
        state_events: EventChannel[StateEvent] | None = None,
        images: EventChannel[ImageGenerated] | None = None,
        image_service: ImageService | None = None,
        die: DieRoller | None = None,
    ) -> None:
        self.state_events: EventChannel[StateEvent] = state_events or EventChannel("state")
        self.images: EventChannel[ImageGenerated] = images or EventChannel("images")
        self._image_service = image_service
        self._die = die
        self._image_tasks: set[asyncio.Task[None]] = set()
        self._handlers: dict[str, Callable[[dict[str, Any], GameState], str]] = {
            "create_character_sheet": self._create_character_sheet,
            "perform_dice_roll": self._perform_dice_roll,
            "generate_character_image": self._generate_character_image,
            "update_basic_attributes": self._update_basic_attributes,
            "update_skills": self._update_skills,
            "update_inventory": self._update_inventory,
            "update_qualities": self._update_qualities,
            "update_matrix_attributes": self._update_matrix_attributes,
            "update_contacts": self._update_contacts,
            "update_augmentations": self._update_augmentations,
        }

    @property
    def tool_names(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def dispatch(self, tool_name: str, arguments: ToolArguments, game_state: GameState) -> str:
        """Execute one tool call.

        Args:
            tool_name: Function name requested by the assistant.
            arguments: JSON arguments, encoded or already decoded.
            game_state: Current state, read only.

        Returns:
            The textual output for the tool call.

        Raises:
            UnknownToolError: If no handler exists for tool_name.
            ToolDispatchError: If the arguments are unusable.
            GameEngineError: If the character is unknown or an update is invalid.
        """
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise UnknownToolError(tool_name)

        if tool_name == "perform_dice_roll":
            try:
                args = decode_arguments(tool_name, arguments)
            except ToolArgumentError as exc:
                return f"Error: {exc}"
        else:
            args = decode_arguments(tool_name, arguments)

        logger.info("Dispatching tool call", tool=tool_name)
        return handler(args, game_state)

    async def wait_for_images(self) -> None:
        """Wait until every pending portrait has been reported."""
        if self._image_tasks:
            await asyncio.gather(*list(self._image_tasks))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse(model: type[RequestT], tool_name: str, args: dict[str, Any]) -> RequestT:
        try:
            return model.model_validate(args)
        except PydanticValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'arguments'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ToolArgumentError(f"Invalid arguments: {problems}", tool_name=tool_name) from exc

    def _queue_updates(
        self,
        game_state: GameState,
        character_name: str,
        updates: list[CharacterSheetUpdate],
    ) -> None:
        """Check updates against a scratch copy of the sheet, then publish them."""
        character = game_state.find_character(character_name)
        if character is None:
            raise CharacterNotFoundError(character_name)

        draft = character.model_copy(deep=True)
        events: list[UpdateRequested] = []
        for update in updates:
            # A rename earlier in the batch changes the name later updates target.
            events.append(UpdateRequested(character_name=draft.name, update=update))
            update.apply_to(draft)

        for event in events:
            self.state_events.publish(event)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _create_character_sheet(self, args: dict[str, Any], game_state: GameState) -> str:
        try:
            sheet = CharacterCreationRequest.model_validate(args).build()
        except (PydanticValidationError, SharadError) as exc:
            logger.warning("Character creation failed, using dummy character", error=str(exc))
            sheet = create_dummy_character()

        self.state_events.publish(CharacterAdded(character=sheet))
        logger.info("Character created", character=sheet.name, main=sheet.main)
        return sheet.model_dump_json()

    def _perform_dice_roll(self, args: dict[str, Any], game_state: GameState) -> str:
        try:
            request = DiceRollRequest.model_validate(args)
            result = perform_dice_roll(request, game_state, die=self._die)
        except (PydanticValidationError, SharadError) as exc:
            logger.warning("Dice roll failed", error=str(exc))
            return f"Error: {exc}"
        return result.model_dump_json()

    def _generate_character_image(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(ImageRequest, "generate_character_image", args)
        if self._image_service is None:
            raise ToolDispatchError(
                "Image generation is not available",
                tool_name="generate_character_image",
            )

        task = asyncio.create_task(self._render_portrait(self._image_service, request.image_generation_prompt))
        self._image_tasks.add(task)
        task.add_done_callback(self._image_tasks.discard)
        return IMAGE_IN_PROGRESS

    async def _render_portrait(self, service: ImageService, prompt: str) -> None:
        try:
            path = await service.generate_image(prompt)
        except Exception as exc:
            logger.exception("Portrait generation failed")
            self.images.publish(ImageGenerated(prompt=prompt, error=str(exc)))
            return
        self.images.publish(ImageGenerated(prompt=prompt, path=path))

    def _update_basic_attributes(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(BasicAttributesRequest, "update_basic_attributes", args)
        updates = [
            CharacterSheetUpdate(
                attribute=attribute,
                operation=UpdateOperation.modify(parse_character_value(attribute, raw)),
            )
            for attribute, raw in request.updates.items()
        ]
        self._queue_updates(game_state, request.character_name, updates)
        return f"Basic attributes updated for character '{request.character_name}'"

    def _update_skills(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(SkillsRequest, "update_skills", args)
        updates = []
        if request.updates.skills is not None:
            updates.append(
                CharacterSheetUpdate(
                    attribute="skills",
                    operation=UpdateOperation.modify(SkillsValue(value=request.updates.skills)),
                )
            )
        if request.updates.knowledge_skills is not None:
            updates.append(
                CharacterSheetUpdate(
                    attribute="knowledge_skills",
                    operation=UpdateOperation.modify(SkillMapValue(value=request.updates.knowledge_skills)),
                )
            )
        if not updates:
            raise ToolArgumentError("No skill updates given", tool_name="update_skills")

        self._queue_updates(game_state, request.character_name, updates)
        return f"Skills updated for character '{request.character_name}'"

    def _update_inventory(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(InventoryRequest, "update_inventory", args)
        kind = parse_operation("update_inventory", request.operation)
        update = CharacterSheetUpdate(
            attribute="inventory",
            operation=UpdateOperation(kind=kind, value=ItemMapValue(value=request.items)),
        )
        self._queue_updates(game_state, request.character_name, [update])
        return f"Inventory updated for character '{request.character_name}'. Operation: {kind.value}"

    def _update_qualities(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(QualitiesRequest, "update_qualities", args)
        kind = parse_operation("update_qualities", request.operation)
        update = CharacterSheetUpdate(
            attribute="qualities",
            operation=UpdateOperation(kind=kind, value=QualityListValue(value=request.qualities)),
        )
        self._queue_updates(game_state, request.character_name, [update])
        return f"Qualities updated for character '{request.character_name}'. Operation: {kind.value}"

    def _update_matrix_attributes(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(MatrixAttributesRequest, "update_matrix_attributes", args)
        update = CharacterSheetUpdate(
            attribute="matrix_attributes",
            operation=UpdateOperation.modify(MatrixAttributesValue(value=request.matrix_attributes)),
        )
        self._queue_updates(game_state, request.character_name, [update])
        return f"Matrix attributes updated for character '{request.character_name}'"

    def _update_contacts(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(ContactsRequest, "update_contacts", args)
        kind = parse_operation("update_contacts", request.operation)
        update = CharacterSheetUpdate(
            attribute="contacts",
            operation=UpdateOperation(kind=kind, value=ContactMapValue(value=request.contacts)),
        )
        self._queue_updates(game_state, request.character_name, [update])
        return f"Contacts updated for character '{request.character_name}'. Operation: {kind.value}"

    def _update_augmentations(self, args: dict[str, Any], game_state: GameState) -> str:
        request = self._parse(AugmentationsRequest, "update_augmentations", args)
        kind = parse_operation("update_augmentations", request.operation)
        update = CharacterSheetUpdate(
            attribute=request.augmentation_type,
            operation=UpdateOperation(kind=kind, value=StringListValue(value=request.augmentations)),
        )
        self._queue_updates(game_state, request.character_name, [update])
        return (
            f"{request.augmentation_type} updated for character '{request.character_name}'. "
            f"Operation: {kind.value}"
        )


__all__ = [
    "ToolArguments",
    "decode_arguments",
    "parse_operation",
    "ToolDispatcher",
]
