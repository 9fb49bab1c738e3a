"""
outcomes.py — What business logic hands to the correlator.

Defines:
    • LoggerMetadata   — how an outcome should be logged (category + fields)
    • ResponseEnvelope — a successful (or warning-level) response outcome

The error-side outcome is ``DomainError`` in ``backend.app.core.errors``;
both carry the same single ``logger`` slot and a numeric ``status_code``.

Lifecycle of the ``logger`` slot:

    PRODUCED      business logic attaches LoggerMetadata to the outcome
    DISPATCHING   the correlator reads it and emits one record
    LOGGED        the correlator sets the slot back to None

A second pass through the correlator therefore finds nothing to emit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from backend.app.observability.types import category_key

# Keys of a metadata mapping that never become payload fields
_RESERVED_KEYS = ("category", "message")


class _Unset:
    """Marks a field that was never given (distinct from an explicit None)."""

    def __repr__(self) -> str:
        return "<unset>"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class LoggerMetadata:
    """Routing key plus the fields of the record to emit."""
    category: str
    code: Any = UNSET
    context: Any = UNSET
    message: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.category = category_key(self.category)

    @classmethod
    def coerce(
        cls, value: Union["LoggerMetadata", Mapping[str, Any]],
    ) -> "LoggerMetadata":
        """Accept either a LoggerMetadata or a plain mapping."""
        if isinstance(value, LoggerMetadata):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(
                f"Logger metadata must be a mapping, got {type(value).__name__}"
            )
        if not value.get("category"):
            raise ValueError("Logger metadata requires a 'category'")

        data = dict(value)
        return cls(
            category=data.pop("category"),
            message=data.pop("message", None),
            code=data.pop("code", UNSET),
            context=data.pop("context", UNSET),
            extra=data,
        )

    def payload(self) -> Dict[str, Any]:
        """Record payload: every given field except ``category`` and ``message``.

        A field set to None is still present; only never-given fields are left out.
        """
        body: Dict[str, Any] = {}
        if self.code is not UNSET:
            body["code"] = self.code
        if self.context is not UNSET:
            body["context"] = self.context
        for key, value in self.extra.items():
            if key not in _RESERVED_KEYS:
                body[key] = value
        return body


MetadataInput = Union[LoggerMetadata, Mapping[str, Any], None]


def coerce_metadata(value: MetadataInput) -> Optional[LoggerMetadata]:
    if value is None:
        return None
    return LoggerMetadata.coerce(value)


@dataclass
class ResponseEnvelope:
    """
    Outcome of a handled request.

    ``status_code`` below 400 is logged as success (info), 400–499 as a
    warning, 500+ as an error.
    """
    status_code: int
    message: str
    data: Any = None
    logger: Optional[LoggerMetadata] = None

    def __post_init__(self) -> None:
        self.logger = coerce_metadata(self.logger)

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message, "data": self.data}


__all__ = [
    "LoggerMetadata",
    "MetadataInput",
    "UNSET",
    "ResponseEnvelope",
    "coerce_metadata",
]
