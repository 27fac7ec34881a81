"""Structured logging for the Sharad Shadowrun client.

structlog entries and records from third-party libraries (openai, httpx)
are rendered by one ``ProcessorFormatter`` so the console and the optional
log file share a format. The terminal usually belongs to the game's UI;
long sessions are better followed through ``log_file``.

Example:
    >>> from sharad.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Run polled", run_id="run_abc", status="in_progress")
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from sharad.core.config import Settings
    from structlog.types import EventDict, WrappedLogger


APP_NAME = "sharad"

# Libraries that log every HTTP request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")

_HANDLER_MARK = "_sharad_handler"


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every entry with the application name."""
    event_dict["app"] = APP_NAME
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_format: bool, colors: bool) -> Processor:
    if json_format:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=colors,
        exception_formatter=structlog.dev.plain_traceback,
    )


def _formatter(json_format: bool, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    final: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_format:
        final.append(structlog.processors.format_exc_info)
    final.append(_renderer(json_format, colors))
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=final,
    )


def _install(handler: logging.Handler, level: int) -> None:
    setattr(handler, _HANDLER_MARK, True)
    handler.setLevel(level)
    logging.getLogger().addHandler(handler)


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure application-wide logging.

    Calling it again replaces the handlers installed by the previous call
    and leaves foreign handlers on the root logger alone.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Render entries as JSON lines instead of console text.
        log_file: Optional path of a file that receives the same entries.
            The file is always written without colors.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(numeric_level)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(json_format, colors=sys.stdout.isatty()))
    _install(console, numeric_level)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(_formatter(json_format, colors=False))
        _install(file_handler, numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from application settings.

    Debug mode forces DEBUG; the log file lives under the data directory.
    """
    configure_logging(
        level="DEBUG" if settings.debug else settings.log_level,
        log_file=str(settings.storage.data_path / "sharad.log"),
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind values that appear in every entry logged from this context.

    The turn orchestrator binds ``thread_id`` and ``run_id`` here so every
    entry logged while a run is in flight can be correlated.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
