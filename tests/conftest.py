"""
Shared fixtures for the category logging test-suite.

Environment variables are set before any ``backend`` import so the cached
settings never create real log files during the run.
"""

from __future__ import annotations

import os

os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "development")

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from backend.app.observability.correlator import ErrorCorrelator
from backend.app.observability.registry import LoggerRegistry
from backend.app.observability.schema import LoggerSchema, load_schema
from backend.app.observability.types import Method


# ═══════════════════════════════════════════════════════════════════════════
# Recording sink
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class EmittedRecord:
    key: str
    level: Method
    payload: Dict[str, Any]
    message: Optional[str]


@dataclass
class RecordingSink:
    """LoggerSink that keeps every record in memory."""
    key: str
    display_name: str
    records: List[EmittedRecord] = field(default_factory=list)
    closed: bool = False

    def emit(self, level: Method, payload: Dict[str, Any], message: Optional[str]) -> None:
        self.records.append(EmittedRecord(self.key, Method.parse(level), payload, message))

    def close(self) -> None:
        self.closed = True


class SinkRecorder:
    """Sink factory remembering the sink built for each category."""

    def __init__(self) -> None:
        self.sinks: Dict[str, RecordingSink] = {}

    def __call__(self, key: str, display_name: str) -> RecordingSink:
        sink = RecordingSink(key, display_name)
        self.sinks[key] = sink
        return sink

    @property
    def records(self) -> List[EmittedRecord]:
        return [r for sink in self.sinks.values() for r in sink.records]


# ═══════════════════════════════════════════════════════════════════════════
# Schema / registry fixtures
# ═══════════════════════════════════════════════════════════════════════════

RAW_SCHEMA: Dict[str, Any] = {
    "common": {
        "requiredFields": {
            "info": ["code", "context"],
            "warn": ["code", "context"],
            "error": ["code", "context"],
            "fatal": ["code", "context"],
        },
        "redactFields": ["password", "headers.authorization"],
    },
    "loggers": {
        "system": {
            "category": "System",
            "customRequiredFields": {"fatal": ["error"]},
        },
        "authentication": {
            "category": "Authentication",
            "customRequiredFields": {"warn": ["reason", "code"]},
            "redactFields": ["token"],
        },
        "validation": {"category": "Validation"},
        "usage": {"category": "Usage", "redactFields": ["user.email"]},
    },
}


@pytest.fixture
def raw_schema() -> Dict[str, Any]:
    return copy.deepcopy(RAW_SCHEMA)


@pytest.fixture
def schema(raw_schema) -> LoggerSchema:
    return load_schema(raw_schema)


@pytest.fixture
def recorder() -> SinkRecorder:
    return SinkRecorder()


@pytest.fixture
def registry(schema, recorder) -> LoggerRegistry:
    return LoggerRegistry.build(schema, recorder)


@pytest.fixture
def correlator(registry) -> ErrorCorrelator:
    return ErrorCorrelator(registry)


# ═══════════════════════════════════════════════════════════════════════════
# Application fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app_settings():
    from backend.app.core.config import Settings

    return Settings(
        ENVIRONMENT="development",
        DEBUG=True,
        LOG_FILE_ENABLED=False,
        LOG_CONSOLE_ENABLED=False,
    )


@pytest.fixture
def app_recorder() -> SinkRecorder:
    return SinkRecorder()


@pytest.fixture
def app(app_settings, app_recorder):
    """Application over the bundled Schema, recording every category record."""
    from backend.app.main import create_app
    from backend.app.observability.schema import load_schema_file

    registry = LoggerRegistry.build(load_schema_file(), app_recorder)
    return create_app(config=app_settings, registry=registry)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)
