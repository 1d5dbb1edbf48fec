"""Structured logging for the RPG bot.

Every module logs through structlog with key/value fields::

    logger = get_logger(__name__)
    logger.info("Creation session started", session_id=sid, owner_id=owner)

The session registry binds ``actor_id`` and ``guild_id`` for the duration of
an event with :func:`log_context`, so every line written while the event is
processed (transitions, rejections, persistence failures) carries them.

Output is a colored console in debug runs and one JSON object per line
otherwise; :func:`configure_from_settings` picks based on
``Settings.json_logs``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from rpg_bot.core.config import Settings


_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Libraries a chat transport typically pulls in; their INFO output is noise.
_QUIET_LOGGERS = ("asyncio", "discord", "aiosqlite")


def app_context_processor(app_name: str, app_version: str | None = None) -> Processor:
    """Build a processor that stamps the application name (and version) on each entry.

    Args:
        app_name: Value for the ``app`` key.
        app_version: Value for the ``version`` key; omitted when None.

    Returns:
        A structlog processor.
    """

    def add_app_context(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("app", app_name)
        if app_version is not None:
            event_dict.setdefault("version", app_version)
        return event_dict

    return add_app_context


def _build_processors(json_format: bool, app_name: str, app_version: str | None) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        app_context_processor(app_name, app_version),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        return [
            *shared,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        *shared,
        structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
    app_name: str = "rpg_bot",
    app_version: str | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, render one JSON object per line.
        log_file: Optional path that also receives standard library records.
        app_name: Stamped on every entry as ``app``.
        app_version: Stamped on every entry as ``version`` when given.

    Example:
        >>> configure_logging(level="DEBUG", json_format=False)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=_build_processors(json_format, app_name, app_version),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format=_STDLIB_FORMAT,
        level=numeric_level,
        stream=sys.stdout,
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
        logging.getLogger().addHandler(file_handler)


def configure_from_settings(settings: Settings | None = None, *, log_file: str | None = None) -> None:
    """Configure logging from application settings.

    Args:
        settings: Settings to read; the cached settings when omitted.
        log_file: Optional log file path.
    """
    if settings is None:
        from rpg_bot.core.config import get_settings

        settings = get_settings()

    configure_logging(
        level="DEBUG" if settings.debug else settings.log_level,
        json_format=settings.json_logs,
        log_file=log_file,
        app_name=settings.app_name,
        app_version=settings.app_version,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind key/value pairs that appear on every later entry in this context.

    Example:
        >>> bind_context(actor_id="123", guild_id="456")
        >>> logger.info("Event applied")  # includes actor_id and guild_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop every bound context variable."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind key/value pairs for the duration of a ``with`` block.

    Previously bound values are restored on exit, so nested scopes and
    concurrent tasks do not clobber each other's context.

    Example:
        >>> with log_context(actor_id="123", guild_id="456"):
        ...     logger.info("Event applied")
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


__all__ = [
    "app_context_processor",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "log_context",
]
