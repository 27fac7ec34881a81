"""Assistant service boundary.

The game master runs on a remote assistant service organized around
threads (conversations), messages and runs (one unit of assistant work).
The turn orchestrator only talks to the ``AssistantService`` protocol;
``OpenAIAssistantService`` implements it on the OpenAI Assistants API.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from enum import StrEnum
from typing import Any, Literal, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from sharad.core.config import AIProviderSettings, get_settings
from sharad.core.constants import SUBMIT_TOOL_OUTPUTS
from sharad.core.exceptions import (
    AIConnectionError,
    AIRateLimitError,
    AIResponseError,
    ConfigurationError,
)
from sharad.core.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

PROVIDER = "openai"


# =============================================================================
# Wire Types
# =============================================================================


class RunStatus(StrEnum):
    """Run statuses as reported by the service."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    COMPLETED = "completed"
    FAILED = "failed"
    INCOMPLETE = "incomplete"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_failure(self) -> bool:
        return self in _FAILURE_STATUSES


_FAILURE_STATUSES = frozenset(
    {
        RunStatus.FAILED,
        RunStatus.INCOMPLETE,
        RunStatus.CANCELLING,
        RunStatus.CANCELLED,
        RunStatus.EXPIRED,
    }
)


class ToolCall(BaseModel):
    """A tool invocation requested by the assistant."""

    model_config = ConfigDict(frozen=True)

    id: str
    function_name: str
    arguments: str = "{}"


class ToolOutput(BaseModel):
    """The client's answer to one tool call."""

    model_config = ConfigDict(frozen=True)

    tool_call_id: str
    output: str


class RequiredAction(BaseModel):
    """What a run waiting on the client asks for."""

    model_config = ConfigDict(frozen=True)

    type: str = SUBMIT_TOOL_OUTPUTS
    tool_calls: list[ToolCall] = Field(default_factory=list)


class RunSnapshot(BaseModel):
    """State of a run at one poll."""

    model_config = ConfigDict(frozen=True)

    id: str
    thread_id: str
    status: RunStatus
    required_action: RequiredAction | None = None


class ThreadMessage(BaseModel):
    """A message on a thread, reduced to its text."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Literal["user", "assistant"]
    text: str
    run_id: str | None = None


class MessagePage(BaseModel):
    """One page of thread messages."""

    messages: list[ThreadMessage] = Field(default_factory=list)
    has_more: bool = False

    @property
    def last_id(self) -> str | None:
        return self.messages[-1].id if self.messages else None


class AssistantService(Protocol):
    """Operations the client needs from the assistant service."""

    async def create_assistant(
        self,
        *,
        name: str,
        model: str,
        instructions: str,
        tools: Sequence[dict[str, Any]],
    ) -> str: ...

    async def create_thread(self) -> str: ...

    async def append_message(self, thread_id: str, role: str, text: str) -> str: ...

    async def create_run(self, thread_id: str, assistant_id: str) -> RunSnapshot: ...

    async def get_run(self, thread_id: str, run_id: str) -> RunSnapshot: ...

    async def cancel_run(self, thread_id: str, run_id: str) -> None: ...

    async def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        outputs: Sequence[ToolOutput],
    ) -> RunSnapshot: ...

    async def list_messages(
        self,
        thread_id: str,
        *,
        limit: int = 20,
        order: Literal["asc", "desc"] = "desc",
        after: str | None = None,
        run_id: str | None = None,
    ) -> MessagePage: ...


# =============================================================================
# OpenAI Implementation
# =============================================================================


def _to_snapshot(run: Any) -> RunSnapshot:
    required_action = None
    if run.required_action is not None:
        submit = getattr(run.required_action, SUBMIT_TOOL_OUTPUTS, None)
        tool_calls = [
            ToolCall(
                id=call.id,
                function_name=call.function.name,
                arguments=call.function.arguments or "{}",
            )
            for call in (submit.tool_calls if submit is not None else [])
        ]
        required_action = RequiredAction(type=run.required_action.type, tool_calls=tool_calls)

    try:
        status = RunStatus(run.status)
    except ValueError as exc:
        raise AIResponseError(
            f"Unknown run status: {run.status}",
            provider=PROVIDER,
        ) from exc

    return RunSnapshot(
        id=run.id,
        thread_id=run.thread_id,
        status=status,
        required_action=required_action,
    )


def _to_thread_message(message: Any) -> ThreadMessage:
    parts = [block.text.value for block in message.content if block.type == "text"]
    return ThreadMessage(
        id=message.id,
        role=message.role,
        text="\n".join(parts),
        run_id=message.run_id,
    )


class OpenAIAssistantService:
    """Assistant service on the OpenAI Assistants API.

    Read calls (get_run, list_messages) are retried on rate limits and
    connection errors. Writes are never retried, since a repeated
    create_run or submit_tool_outputs would not be idempotent.

    Example:
        >>> service = OpenAIAssistantService()
        >>> thread_id = await service.create_thread()
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        settings: AIProviderSettings | None = None,
        client: Any = None,
    ) -> None:
        """Initialize the service.

        Args:
            api_key: OpenAI API key. If None, read from settings.
            settings: Provider settings. If None, read from the app settings.
            client: Preconfigured AsyncOpenAI client.
        """
        self._settings = settings or get_settings().ai
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        """Get or create the AsyncOpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            api_key = self._api_key
            if api_key is None and self._settings.openai_api_key is not None:
                api_key = self._settings.openai_api_key.get_secret_value()

            if not api_key:
                raise ConfigurationError(
                    "OpenAI API key not configured",
                    config_key="openai_api_key",
                    details={"env_var": "SHARAD_OPENAI_API_KEY"},
                )

            self._client = AsyncOpenAI(
                api_key=api_key,
                timeout=self._settings.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def _call(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        """Run one API call, translating SDK errors to domain errors."""
        from openai import APIConnectionError, APIStatusError, OpenAIError, RateLimitError

        try:
            return await func()
        except RateLimitError as exc:
            logger.warning("Rate limited", operation=operation)
            retry_after = exc.response.headers.get("retry-after") if exc.response is not None else None
            raise AIRateLimitError(
                f"Rate limited during {operation}",
                retry_after_seconds=float(retry_after) if retry_after else None,
                details={"provider": PROVIDER},
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect during {operation}: {exc}",
                provider=PROVIDER,
            ) from exc
        except APIStatusError as exc:
            raise AIConnectionError(
                f"Service rejected {operation}: {exc.message}",
                provider=PROVIDER,
                details={"status_code": exc.status_code},
            ) from exc
        except OpenAIError as exc:
            raise AIResponseError(
                f"Service call {operation} failed: {exc}",
                provider=PROVIDER,
            ) from exc

    async def _read(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        """Run an idempotent read with retries."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type((AIRateLimitError, AIConnectionError)),
            reraise=True,
        ):
            with attempt:
                return await self._call(operation, func)
        raise AssertionError("unreachable")

    async def create_assistant(
        self,
        *,
        name: str,
        model: str,
        instructions: str,
        tools: Sequence[dict[str, Any]],
    ) -> str:
        client = self._get_client()
        assistant = await self._call(
            "create_assistant",
            lambda: client.beta.assistants.create(
                name=name,
                model=model,
                instructions=instructions,
                tools=list(tools),
                temperature=self._settings.assistant_temperature,
            ),
        )
        logger.info("Assistant created", assistant_id=assistant.id, model=model)
        return assistant.id

    async def create_thread(self) -> str:
        client = self._get_client()
        thread = await self._call("create_thread", lambda: client.beta.threads.create())
        logger.info("Thread created", thread_id=thread.id)
        return thread.id

    async def append_message(self, thread_id: str, role: str, text: str) -> str:
        client = self._get_client()
        message = await self._call(
            "append_message",
            lambda: client.beta.threads.messages.create(thread_id=thread_id, role=role, content=text),
        )
        return message.id

    async def create_run(self, thread_id: str, assistant_id: str) -> RunSnapshot:
        client = self._get_client()
        run = await self._call(
            "create_run",
            lambda: client.beta.threads.runs.create(thread_id=thread_id, assistant_id=assistant_id),
        )
        return _to_snapshot(run)

    async def get_run(self, thread_id: str, run_id: str) -> RunSnapshot:
        client = self._get_client()
        run = await self._read(
            "get_run",
            lambda: client.beta.threads.runs.retrieve(run_id=run_id, thread_id=thread_id),
        )
        return _to_snapshot(run)

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        client = self._get_client()
        await self._call(
            "cancel_run",
            lambda: client.beta.threads.runs.cancel(run_id=run_id, thread_id=thread_id),
        )
        logger.info("Run cancel requested", run_id=run_id)

    async def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        outputs: Sequence[ToolOutput],
    ) -> RunSnapshot:
        client = self._get_client()
        payload = [{"tool_call_id": out.tool_call_id, "output": out.output} for out in outputs]
        run = await self._call(
            "submit_tool_outputs",
            lambda: client.beta.threads.runs.submit_tool_outputs(
                run_id=run_id,
                thread_id=thread_id,
                tool_outputs=payload,
            ),
        )
        return _to_snapshot(run)

    async def list_messages(
        self,
        thread_id: str,
        *,
        limit: int = 20,
        order: Literal["asc", "desc"] = "desc",
        after: str | None = None,
        run_id: str | None = None,
    ) -> MessagePage:
        client = self._get_client()
        kwargs: dict[str, Any] = {"thread_id": thread_id, "limit": limit, "order": order}
        if after is not None:
            kwargs["after"] = after
        if run_id is not None:
            kwargs["run_id"] = run_id

        page = await self._read("list_messages", lambda: client.beta.threads.messages.list(**kwargs))
        return MessagePage(
            messages=[_to_thread_message(message) for message in page.data],
            has_more=bool(getattr(page, "has_more", False)),
        )


__all__ = [
    "RunStatus",
    "ToolCall",
    "ToolOutput",
    "RequiredAction",
    "RunSnapshot",
    "ThreadMessage",
    "MessagePage",
    "AssistantService",
    "OpenAIAssistantService",
]
