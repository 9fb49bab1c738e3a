"""
correlator.py — One request outcome, exactly one category log entry.

═══════════════════════════════════════════════════════════════════════════
SEVERITY TIERS
═══════════════════════════════════════════════════════════════════════════

    Status code        Tier       Method
    ───────────        ────       ──────
    < 400              success    info
    400 – 499          warning    warn
    ≥ 500              error      error

The whole 400–499 range is a warning (not only 400 itself).

═══════════════════════════════════════════════════════════════════════════
DISPATCH
═══════════════════════════════════════════════════════════════════════════

    outcome.logger is None ──────────────────────────► nothing to do
            │
            ▼
    tier from outcome.status_code (missing → 500)
    category logger from the registry (unknown → skipped, no record)
    payload = metadata minus category/message (+ "error" from a cause)
    message = metadata.message or outcome.message
    category_logger.<method>(payload, message)
            │
            ▼
    outcome.logger = None          (also when the log call raised)

Clearing the slot is what makes a second pass a no-op. A
MissingFieldsError from the log call is re-raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, Optional

from backend.app.observability.outcomes import LoggerMetadata
from backend.app.observability.registry import LoggerRegistry
from backend.app.observability.types import Method

logger = logging.getLogger(__name__)

DEFAULT_STATUS_CODE = 500


class SeverityTier(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR   = "error"

    @property
    def method(self) -> Method:
        return _TIER_METHODS[self]


_TIER_METHODS = {
    SeverityTier.SUCCESS: Method.INFO,
    SeverityTier.WARNING: Method.WARN,
    SeverityTier.ERROR:   Method.ERROR,
}


def severity_for_status(status_code: int) -> SeverityTier:
    if status_code < 400:
        return SeverityTier.SUCCESS
    if status_code < 500:
        return SeverityTier.WARNING
    return SeverityTier.ERROR


def status_code_of(outcome: Any) -> int:
    status_code = getattr(outcome, "status_code", None)
    if isinstance(status_code, int) and not isinstance(status_code, bool):
        return status_code
    return DEFAULT_STATUS_CODE


def serialize_cause(cause: Any) -> Any:
    """JSON-safe rendering of an error's underlying cause."""
    if isinstance(cause, BaseException):
        return {"type": type(cause).__name__, "message": str(cause)}
    if isinstance(cause, Mapping):
        return dict(cause)
    if cause is None or isinstance(cause, (str, int, float, bool)):
        return cause
    return str(cause)


class ErrorCorrelator:
    """Maps an outcome (ResponseEnvelope or DomainError) to one log call."""

    def __init__(self, registry: LoggerRegistry):
        self._registry = registry

    @property
    def registry(self) -> LoggerRegistry:
        return self._registry

    def dispatch(self, outcome: Any) -> bool:
        """Emit the outcome's record, if any. True when a record was emitted."""
        raw = getattr(outcome, "logger", None)
        if not raw:
            return False

        try:
            metadata = LoggerMetadata.coerce(raw)
            status_code = status_code_of(outcome)
            tier = severity_for_status(status_code)

            category_logger = self._registry.lookup(metadata.category)
            if category_logger is None:
                logger.debug(
                    "No logger registered for category '%s'; record skipped",
                    metadata.category,
                    extra={"category": metadata.category, "status_code": status_code},
                )
                return False

            message = metadata.message or getattr(outcome, "message", None)
            category_logger.log(tier.method, self._payload(metadata, outcome), message)
            return True
        finally:
            outcome.logger = None

    @staticmethod
    def _payload(metadata: LoggerMetadata, outcome: Any) -> Dict[str, Any]:
        payload = metadata.payload()
        cause: Optional[Any] = getattr(outcome, "cause", None)
        if cause is not None and "error" not in payload:
            payload["error"] = serialize_cause(cause)
        return payload
