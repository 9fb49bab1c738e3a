"""
sinks.py — Where validated, redacted records go.

The pipeline only depends on the LoggerSink capability:

    emit(level, payload, message)

LoggingSink implements it on top of the standard library:

    CategoryLogger.info(...)
          │  (validated + redacted)
          ▼
    LoggingSink.emit ──► isolated logging.Logger ──► QueueHandler
                                                          │ queue
                                                          ▼
                                 QueueListener thread ──► console (pretty)
                                                     ──► <level> files (JSON)

Handler I/O happens on the listener thread, never on the request path.

Destination path convention:

    <LOG_DIR>/<DisplayName>/<level>/<level>-<YYYY-MM-DD>.log

One file per (category, level, UTC calendar day), fixed when the sink is
built. A file destination's level is a minimum: the ``warn`` file also
receives ``error`` and ``fatal`` records.
"""

from __future__ import annotations

import logging
import os
import queue
import sys
from datetime import date, datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Union

from backend.app.core.config import Settings
from backend.app.core.logging_config import JSONFormatter, PrettyFormatter
from backend.app.observability.types import Method

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = "./logs"


class LoggerSink(Protocol):
    """Capability every category destination must provide."""

    def emit(
        self, level: Method, payload: Dict[str, Any], message: Optional[str],
    ) -> None:
        ...

    def close(self) -> None:
        ...


SinkFactory = Callable[[str, str], LoggerSink]


# ═══════════════════════════════════════════════════════════════════════════
# Destination paths
# ═══════════════════════════════════════════════════════════════════════════

def generate_log_file_path(
    parent: str,
    level: Union[str, Method],
    day: Optional[date] = None,
    root: str = DEFAULT_LOG_DIR,
) -> str:
    """``generate_log_file_path("System", "error", date(2024, 1, 1))``
    → ``./logs/System/error/error-2024-01-01.log``"""
    level_name = Method.parse(level).value
    day = day or datetime.now(timezone.utc).date()
    return f"{root.rstrip('/')}/{parent}/{level_name}/{level_name}-{day.isoformat()}.log"


def build_destinations(
    display_name: str,
    *,
    log_dir: str = DEFAULT_LOG_DIR,
    file_levels: Iterable[str] = ("error", "warn", "info"),
    file_enabled: bool = True,
    console_enabled: bool = True,
    day: Optional[date] = None,
) -> List[logging.Handler]:
    """Console + per-level file handlers for one category."""
    handlers: List[logging.Handler] = []

    if console_enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(PrettyFormatter())
        handlers.append(console)

    if file_enabled:
        for level in file_levels:
            method = Method.parse(level)
            path = generate_log_file_path(display_name, method, day=day, root=log_dir)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setLevel(method.levelno)
            file_handler.setFormatter(JSONFormatter())
            handlers.append(file_handler)

    return handlers


# ═══════════════════════════════════════════════════════════════════════════
# Standard-library sink
# ═══════════════════════════════════════════════════════════════════════════

class LoggingSink:
    """
    LoggerSink backed by a private ``logging.Logger``.

    The logger is constructed directly rather than via ``getLogger`` so it is
    not shared through the global logger manager and never propagates.
    """

    def __init__(
        self,
        key: str,
        display_name: str,
        handlers: Iterable[logging.Handler] = (),
        *,
        level: Union[str, Method] = Method.DEBUG,
    ):
        self.key = key
        self.display_name = display_name
        self.level = Method.parse(level)
        self._handlers = list(handlers)

        self._logger = logging.Logger(f"category.{key}", level=self.level.levelno)
        self._logger.propagate = False

        self._queue: "queue.SimpleQueue[logging.LogRecord]" = queue.SimpleQueue()
        self._logger.addHandler(QueueHandler(self._queue))
        self._listener: Optional[QueueListener] = QueueListener(
            self._queue, *self._handlers, respect_handler_level=True,
        )
        self._listener.start()

    @property
    def handlers(self) -> List[logging.Handler]:
        return list(self._handlers)

    def emit(
        self, level: Method, payload: Dict[str, Any], message: Optional[str],
    ) -> None:
        method = Method.parse(level)
        if self._listener is None:
            logger.warning(
                "Sink %s is closed; %s record dropped", self.key, method.value,
                extra={"category": self.key},
            )
            return
        self._logger.log(
            method.levelno,
            message or "",
            extra={
                "payload": payload,
                "category": self.display_name,
                "method_label": method.label,
            },
        )

    def close(self) -> None:
        """Drain the queue, stop the listener thread and close files."""
        if self._listener is None:
            return
        self._listener.stop()
        self._listener = None
        for handler in self._handlers:
            handler.close()

    def __repr__(self) -> str:
        return f"LoggingSink(key={self.key!r}, level={self.level.value!r})"


def create_sink_factory(config: Settings) -> SinkFactory:
    """Build LoggingSinks from application settings."""

    def factory(key: str, display_name: str) -> LoggerSink:
        handlers = build_destinations(
            display_name,
            log_dir=config.LOG_DIR,
            file_levels=config.LOG_FILE_LEVELS,
            file_enabled=config.LOG_FILE_ENABLED,
            console_enabled=config.LOG_CONSOLE_ENABLED,
        )
        logger.debug(
            "Sink for %s: %d destination(s)", key, len(handlers),
            extra={"category": key},
        )
        return LoggingSink(key, display_name, handlers, level=config.CATEGORY_LOG_LEVEL)

    return factory
