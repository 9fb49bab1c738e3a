"""
registry.py — One validating logger per configured category.

Every call on a CategoryLogger goes through the same three steps:

    1. FieldValidator   required fields for (category, method) present?
                        no  → MissingFieldsError raised to the caller
    2. RedactionEngine  censor common + category redaction paths
    3. LoggerSink.emit  hand the record to the destination

CategoryLogger wraps a sink; it does not subclass or patch one. Each
category gets its own instance holding its own validator view, redaction
paths and sink, so binding or reconfiguring one category cannot leak into
another.

The registry is built once at startup and passed to whoever needs it
(app.state, dependencies); it is never a module-level global.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Optional, Union

from backend.app.core.config import Settings
from backend.app.core.errors import ConfigError
from backend.app.observability.redaction import RedactionEngine
from backend.app.observability.schema import LoggerSchema, load_schema_file
from backend.app.observability.sinks import LoggerSink, SinkFactory, create_sink_factory
from backend.app.observability.types import Category, Method, category_key
from backend.app.observability.validator import FieldValidator

logger = logging.getLogger(__name__)


class CategoryLogger:
    """Validating, redacting front for one category's sink."""

    def __init__(
        self,
        key: str,
        display_name: str,
        sink: LoggerSink,
        validator: FieldValidator,
        redactor: RedactionEngine,
        bindings: Optional[Mapping[str, Any]] = None,
    ):
        self.key = key
        self.display_name = display_name
        self._sink = sink
        self._validator = validator
        self._redactor = redactor
        self._bindings: Dict[str, Any] = dict(bindings or {})

    @property
    def bindings(self) -> Dict[str, Any]:
        return dict(self._bindings)

    @property
    def redact_paths(self) -> List[str]:
        return list(self._redactor.paths)

    def required_fields(self, method: Union[str, Method]) -> List[str]:
        return self._validator.required_fields(self.key, method)

    def log(
        self,
        method: Union[str, Method],
        payload: Any = None,
        message: Optional[str] = None,
    ) -> None:
        method = Method.parse(method)
        self._validator.validate(self.key, method, payload)

        # info("text") form: no fields were required, the string is the message
        if isinstance(payload, str) and message is None:
            payload, message = None, payload

        record: Dict[str, Any] = dict(self._bindings)
        if isinstance(payload, Mapping):
            record.update(payload)

        self._sink.emit(method, self._redactor.redact(record), message)

    def trace(self, payload: Any = None, message: Optional[str] = None) -> None:
        self.log(Method.TRACE, payload, message)

    def debug(self, payload: Any = None, message: Optional[str] = None) -> None:
        self.log(Method.DEBUG, payload, message)

    def info(self, payload: Any = None, message: Optional[str] = None) -> None:
        self.log(Method.INFO, payload, message)

    def warn(self, payload: Any = None, message: Optional[str] = None) -> None:
        self.log(Method.WARN, payload, message)

    def error(self, payload: Any = None, message: Optional[str] = None) -> None:
        self.log(Method.ERROR, payload, message)

    def fatal(self, payload: Any = None, message: Optional[str] = None) -> None:
        self.log(Method.FATAL, payload, message)

    def bind(self, **bindings: Any) -> "CategoryLogger":
        """New logger for the same category with extra fields on every record."""
        merged = {**self._bindings, **bindings}
        return CategoryLogger(
            self.key,
            self.display_name,
            self._sink,
            self._validator,
            self._redactor,
            merged,
        )

    def child(self, bindings: Mapping[str, Any]) -> "CategoryLogger":
        return self.bind(**dict(bindings))

    def __repr__(self) -> str:
        return f"CategoryLogger(key={self.key!r}, display_name={self.display_name!r})"


class LoggerRegistry:
    """Category key → CategoryLogger, built from a LoggerSchema."""

    def __init__(
        self,
        schema: LoggerSchema,
        loggers: Mapping[str, CategoryLogger],
        sinks: Optional[List[LoggerSink]] = None,
    ):
        self.schema = schema
        self._loggers: Dict[str, CategoryLogger] = dict(loggers)
        self._sinks: List[LoggerSink] = list(sinks or [])
        self._closed = False

    @classmethod
    def build(cls, schema: LoggerSchema, sink_factory: SinkFactory) -> "LoggerRegistry":
        validator = FieldValidator(schema)
        loggers: Dict[str, CategoryLogger] = {}
        sinks: List[LoggerSink] = []

        for key, entry in schema.loggers.items():
            try:
                sink = sink_factory(key, entry.category)
            except OSError as exc:
                for created in sinks:
                    created.close()
                raise ConfigError(
                    f"Cannot create log destinations for '{key}': {exc}"
                ) from exc
            sinks.append(sink)
            loggers[key] = CategoryLogger(
                key,
                entry.category,
                sink,
                validator,
                RedactionEngine(schema.redact_paths(key)),
            )

        logger.info(
            "Category loggers ready: %s", ", ".join(loggers) or "<none>",
            extra={"categories": len(loggers)},
        )
        return cls(schema, loggers, sinks)

    def lookup(self, category: Union[str, Category]) -> Optional[CategoryLogger]:
        return self._loggers.get(category_key(category))

    def __getitem__(self, category: Union[str, Category]) -> CategoryLogger:
        return self._loggers[category_key(category)]

    def __contains__(self, category: object) -> bool:
        if not isinstance(category, (str, Category)):
            return False
        return category_key(category) in self._loggers

    def __iter__(self) -> Iterator[str]:
        return iter(self._loggers)

    def __len__(self) -> int:
        return len(self._loggers)

    @property
    def categories(self) -> List[str]:
        return list(self._loggers)

    def close(self) -> None:
        """Flush and close every sink. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for sink in self._sinks:
            sink.close()


def build_registry(config: Settings) -> LoggerRegistry:
    """Load the Schema named by settings and build sinks for it."""
    schema = load_schema_file(config.LOGGER_SCHEMA_PATH)
    return LoggerRegistry.build(schema, create_sink_factory(config))
