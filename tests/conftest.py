"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Sharad test suite, including a scripted in-memory assistant service.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import pytest

from sharad.core.config import Settings, StorageSettings, TurnSettings
from sharad.core.exceptions import AIConnectionError
from sharad.dm.assistant import (
    MessagePage,
    RequiredAction,
    RunSnapshot,
    RunStatus,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)
from sharad.models.character import CharacterSheet, Item, Skills, create_character_sheet
from sharad.models.game_state import GameState


if TYPE_CHECKING:
    from collections.abc import Generator


THREAD_ID = "thread_test"
ASSISTANT_ID = "asst_test"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from sharad.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "SHARAD_OPENAI_API_KEY": "test-openai-key",
        "SHARAD_DEBUG": "true",
        "SHARAD_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def turn_settings() -> TurnSettings:
    """Turn settings with a fast poll and a short timeout."""
    return TurnSettings(poll_interval_seconds=0.01, turn_timeout_seconds=0.3)


@pytest.fixture
def settings(tmp_path: Path, turn_settings: TurnSettings) -> Settings:
    """Application settings writing only below tmp_path."""
    storage = StorageSettings(data_path=tmp_path / "data", image_path=tmp_path / "portraits")
    return Settings(storage=storage, turn=turn_settings)


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def street_samurai() -> CharacterSheet:
    """The player's character: a human street samurai.

    Human, body 5, agility 6, reaction 5, strength 4, willpower 3, logic 2,
    intuition 4, charisma 2, edge 3; Pistols 6.
    """
    return create_character_sheet(
        name="Kaze",
        race="Human",
        gender="Female",
        backstory="Ex-corporate security turned runner.",
        main=True,
        attributes={
            "body": 5,
            "agility": 6,
            "reaction": 5,
            "strength": 4,
            "willpower": 3,
            "logic": 2,
            "intuition": 4,
            "charisma": 2,
            "edge": 3,
        },
        skills=Skills(
            combat={"Pistols": 6, "Blades": 4},
            physical={"Sneaking": 3},
            social={"Etiquette": 2},
        ),
        knowledge_skills={"Seattle Gangs": 3},
        nuyen=5000,
        inventory={"Ares Predator V": Item(name="Ares Predator V", quantity=1, description="Heavy pistol")},
    )


@pytest.fixture
def fixer() -> CharacterSheet:
    """A non-player character."""
    return create_character_sheet(
        name="Mr. Johnson",
        race="Elf",
        gender="Male",
        backstory="Pays well, asks few questions.",
        attributes={"charisma": 5, "logic": 4},
        skills=Skills(social={"Negotiation": 6}),
    )


@pytest.fixture
def game_state(street_samurai: CharacterSheet) -> GameState:
    """A game state holding the main character."""
    state = GameState(assistant_id=ASSISTANT_ID, thread_id=THREAD_ID, save_name="Test Run")
    state.characters.append(street_samurai)
    state.main_character_sheet = street_samurai.model_copy(deep=True)
    return state


@pytest.fixture
def empty_game_state() -> GameState:
    """A game state with an empty roster."""
    return GameState(assistant_id=ASSISTANT_ID, thread_id=THREAD_ID)


# =============================================================================
# Engine Fixtures
# =============================================================================


def scripted_die(faces: Iterable[int]) -> Callable[[], int]:
    """Build a die that returns the given faces in order."""
    iterator = iter(faces)

    def die() -> int:
        return next(iterator)

    return die


@pytest.fixture
def make_die() -> Callable[[Iterable[int]], Callable[[], int]]:
    """Factory for scripted dice."""
    return scripted_die


# =============================================================================
# Assistant Service Fakes
# =============================================================================


def run_snapshot(
    status: RunStatus,
    *,
    tool_calls: Sequence[ToolCall] | None = None,
    action_type: str = "submit_tool_outputs",
    run_id: str = "run_test",
) -> RunSnapshot:
    """Build a run snapshot; tool_calls adds a required action."""
    required_action = None
    if tool_calls is not None:
        required_action = RequiredAction(type=action_type, tool_calls=list(tool_calls))
    return RunSnapshot(id=run_id, thread_id=THREAD_ID, status=status, required_action=required_action)


def tool_call(call_id: str, name: str, arguments: dict[str, Any] | str) -> ToolCall:
    """Build a tool call with JSON encoded arguments."""
    import json

    encoded = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return ToolCall(id=call_id, function_name=name, arguments=encoded)


class FakeAssistantService:
    """In-memory assistant service playing back scripted run snapshots.

    ``create_run`` returns the first scripted snapshot; every ``get_run``
    and ``submit_tool_outputs`` returns the next one, repeating the last
    once the script is exhausted. When a completed snapshot is handed out
    the scripted reply is posted as an assistant message.
    """

    def __init__(self) -> None:
        self.assistants: list[dict[str, Any]] = []
        self.threads: list[str] = []
        self.messages: list[ThreadMessage] = []
        self.script: list[RunSnapshot] = []
        self.reply: str | None = None
        self.submitted: list[list[ToolOutput]] = []
        self.cancelled: list[str] = []
        self.cancel_error: Exception | None = None
        self.page_requests: list[dict[str, Any]] = []
        self._message_counter = 0

    def play(self, *snapshots: RunSnapshot, reply: str | None = None) -> None:
        """Script the next run."""
        self.script = list(snapshots)
        self.reply = reply

    def post(self, role: Literal["user", "assistant"], text: str) -> str:
        self._message_counter += 1
        message_id = f"msg_{self._message_counter:04d}"
        self.messages.append(ThreadMessage(id=message_id, role=role, text=text))
        return message_id

    def _next(self) -> RunSnapshot:
        snapshot = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if snapshot.status == RunStatus.COMPLETED and self.reply is not None:
            self.post("assistant", self.reply)
            self.reply = None
        return snapshot

    async def create_assistant(
        self,
        *,
        name: str,
        model: str,
        instructions: str,
        tools: Sequence[dict[str, Any]],
    ) -> str:
        self.assistants.append({"name": name, "model": model, "instructions": instructions, "tools": list(tools)})
        return ASSISTANT_ID

    async def create_thread(self) -> str:
        self.threads.append(THREAD_ID)
        return THREAD_ID

    async def append_message(self, thread_id: str, role: str, text: str) -> str:
        return self.post("user" if role == "user" else "assistant", text)

    async def create_run(self, thread_id: str, assistant_id: str) -> RunSnapshot:
        return self._next()

    async def get_run(self, thread_id: str, run_id: str) -> RunSnapshot:
        return self._next()

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        self.cancelled.append(run_id)
        if self.cancel_error is not None:
            raise self.cancel_error

    async def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        outputs: Sequence[ToolOutput],
    ) -> RunSnapshot:
        self.submitted.append(list(outputs))
        return self._next()

    async def list_messages(
        self,
        thread_id: str,
        *,
        limit: int = 20,
        order: Literal["asc", "desc"] = "desc",
        after: str | None = None,
        run_id: str | None = None,
    ) -> MessagePage:
        self.page_requests.append({"limit": limit, "order": order, "after": after})
        ordered = list(self.messages) if order == "asc" else list(reversed(self.messages))
        if after is not None:
            ids = [message.id for message in ordered]
            ordered = ordered[ids.index(after) + 1 :]
        return MessagePage(messages=ordered[:limit], has_more=len(ordered) > limit)


class FakeImageService:
    """Image service writing empty files, or failing on demand."""

    def __init__(self, output_dir: Path, *, fail: bool = False) -> None:
        self.output_dir = output_dir
        self.fail = fail
        self.prompts: list[str] = []

    async def generate_image(self, prompt: str) -> Path:
        self.prompts.append(prompt)
        if self.fail:
            raise AIConnectionError("image service unavailable")
        path = self.output_dir / f"portrait-{len(self.prompts)}.png"
        path.write_bytes(b"")
        return path


@pytest.fixture
def assistant_service() -> FakeAssistantService:
    """A fresh scripted assistant service."""
    return FakeAssistantService()


@pytest.fixture
def image_service(tmp_path: Path) -> FakeImageService:
    """An image service writing into tmp_path."""
    return FakeImageService(tmp_path)
