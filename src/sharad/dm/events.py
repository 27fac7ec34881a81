"""Event channels between tool handlers and their consumers.

Tool handlers publish what they want to happen; they never mutate the game
state. The state owner drains the state channel after each tool call, and
the UI reads the image channel whenever a portrait finishes.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from sharad.core.logging import get_logger


logger = get_logger(__name__)

E = TypeVar("E")


class ImageGenerated(BaseModel):
    """Outcome of a detached portrait generation."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    path: Path | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.path is not None


class EventChannel(Generic[E]):
    """Unbounded FIFO channel of events.

    Example:
        >>> channel: EventChannel[CharacterAdded] = EventChannel("characters")
        >>> channel.publish(event)
        >>> events = channel.drain()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._queue: asyncio.Queue[E] = asyncio.Queue()

    def publish(self, event: E) -> None:
        """Publish an event without waiting."""
        self._queue.put_nowait(event)
        logger.debug("Event published", channel=self.name, event_type=type(event).__name__)

    def drain(self) -> list[E]:
        """Take every pending event, oldest first."""
        events: list[E] = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    async def get(self) -> E:
        """Wait for the next event."""
        return await self._queue.get()

    def __len__(self) -> int:
        return self._queue.qsize()


__all__ = [
    "ImageGenerated",
    "EventChannel",
]
