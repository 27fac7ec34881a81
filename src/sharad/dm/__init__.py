"""Game master integration: assistant service, tools and turn orchestration."""

from sharad.dm.assistant import (
    AssistantService,
    MessagePage,
    OpenAIAssistantService,
    RequiredAction,
    RunSnapshot,
    RunStatus,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)
from sharad.dm.dispatcher import ToolDispatcher
from sharad.dm.events import EventChannel, ImageGenerated
from sharad.dm.imager import ImageService, OpenAIImageService
from sharad.dm.orchestrator import TurnOrchestrator, TurnPhase
from sharad.dm.session import GameSession


__all__ = [
    "AssistantService",
    "MessagePage",
    "OpenAIAssistantService",
    "RequiredAction",
    "RunSnapshot",
    "RunStatus",
    "ThreadMessage",
    "ToolCall",
    "ToolOutput",
    "ToolDispatcher",
    "EventChannel",
    "ImageGenerated",
    "ImageService",
    "OpenAIImageService",
    "TurnOrchestrator",
    "TurnPhase",
    "GameSession",
]
