"""
Structured logging configuration.

Provides:
    • JSON-formatted logs for production (machine-parseable)
    • Pretty console logs for development (human-readable)
    • Request-scoped context (request_id, client_ip, endpoint)
    • The same two formatters for category logger destinations, where a
      record carries a validated + redacted ``payload`` that is written flat

Usage:
    from backend.app.core.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Schema loaded", extra={"categories": 4})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backend.app.core.config import settings

# ── Context variable for request-scoped data ──
_request_context: ContextVar[Dict[str, Any]] = ContextVar(
    "request_context", default={}
)

# Diagnostic extras surfaced in JSON lines when present on the record
_EXTRA_KEYS = (
    "duration_ms", "status_code", "endpoint", "category", "method",
    "schema_path", "categories",
)


# Written by the formatter on every category line; payload keys never replace them
_RECORD_KEYS = frozenset({"time", "level", "type", "category", "msg"})


def set_request_context(**kwargs: Any) -> None:
    """Set request-scoped log context (call from middleware)."""
    _request_context.set(kwargs)


def get_request_context() -> Dict[str, Any]:
    """Get current request context."""
    return _request_context.get()


def _category_fields(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    """Payload of a category record, or None for a diagnostic record."""
    payload = getattr(record, "payload", None)
    return payload if isinstance(payload, dict) else None


# ── JSON Formatter (Production / files) ──

class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Category records are written flat:
        {"time", "level", <payload...>, "type", "category", "msg"}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = _category_fields(record)
        if payload is not None:
            return json.dumps(self._category_entry(record, payload), default=str)

        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        ctx = get_request_context()
        if ctx:
            log_entry["context"] = ctx

        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(log_entry, default=str)

    @staticmethod
    def _category_entry(record: logging.LogRecord, payload: Dict[str, Any]) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S"),
            "level": record.levelno,
        }
        entry.update(
            (key, value) for key, value in payload.items() if key not in _RECORD_KEYS
        )
        entry["type"] = getattr(record, "method_label", record.levelname)
        entry["category"] = getattr(record, "category", record.name)
        message = record.getMessage()
        if message:
            entry["msg"] = message
        return entry


# ── Pretty Formatter (Development / console) ──

class PrettyFormatter(logging.Formatter):
    """Coloured human-readable format for local development."""

    COLORS = {
        "TRACE": "\033[90m",    # Grey
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args: Any, colorize: bool = True, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.colorize = colorize

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET) if self.colorize else ""
        reset = self.RESET if self.colorize else ""
        label = getattr(record, "method_label", record.levelname)
        msg = record.getMessage()

        payload = _category_fields(record)
        if payload is not None:
            ts = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
            fields = " ".join(f"{k}={v}" for k, v in payload.items())
            category = getattr(record, "category", record.name)
            formatted = f"{color}{ts} {label:5s}{reset} [{category}] {msg}"
            return f"{formatted} {fields}".rstrip()

        ts = self.formatTime(record, "%H:%M:%S")
        ctx = get_request_context()
        ctx_str = ""
        if ctx.get("request_id"):
            ctx_str = f" [{ctx['request_id'][:8]}]"

        formatted = (
            f"{color}{ts} {label:8s}{reset}"
            f"{ctx_str} {record.name}: {msg}"
        )

        if record.exc_info and record.exc_info[1]:
            formatted += f"\n  {type(record.exc_info[1]).__name__}: {record.exc_info[1]}"

        return formatted


# ── Setup ──

def _use_json(fmt: str) -> bool:
    if fmt == "json":
        return True
    if fmt == "pretty":
        return False
    return settings.is_production


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure the service's own (diagnostic) logging."""
    level_name = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Remove existing handlers
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    if _use_json(fmt or settings.LOG_FORMAT):
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(PrettyFormatter())

    root.addHandler(handler)

    # Quieten noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger — call once per module."""
    return logging.getLogger(name)
