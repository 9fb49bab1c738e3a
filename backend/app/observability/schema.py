"""
schema.py — Logger Schema loading and validation.

The Schema (``loggers.json``) describes, per category logger:

    {
      "common":  { "requiredFields": { "<method>": [...] },
                   "redactFields":   ["path", ...] },
      "loggers": { "<key>": { "category": "<Display name>",
                              "customRequiredFields": { "<method>": [...] },
                              "redactFields": ["path", ...] } }
    }

``<key>`` is the routing key (system, authentication, ...). ``category`` is
the display name used for destination directories.

Required fields for (key, method) are ``common ∪ custom``: a category can
add to the common list, never remove from it.

A malformed Schema raises ConfigError. Callers treat that as fatal.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    field_validator,
)

from backend.app.core.errors import ConfigError
from backend.app.observability.types import Category, Method, category_key

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).with_name("loggers.json")

MethodFields = Dict[Method, List[StrictStr]]


class CommonRules(BaseModel):
    """Rules shared by every category logger."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    required_fields: MethodFields = Field(default_factory=dict, alias="requiredFields")
    redact_fields: List[StrictStr] = Field(default_factory=list, alias="redactFields")


class LoggerEntry(BaseModel):
    """One category logger entry."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: StrictStr
    custom_required_fields: MethodFields = Field(
        default_factory=dict, alias="customRequiredFields",
    )
    redact_fields: List[StrictStr] = Field(default_factory=list, alias="redactFields")

    @field_validator("category")
    @classmethod
    def _category_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("category must be a non-empty string")
        return value


class LoggerSchema(BaseModel):
    """Validated Schema. Read-only once loaded."""
    model_config = ConfigDict(frozen=True)

    common: CommonRules = Field(default_factory=CommonRules)
    loggers: Dict[StrictStr, LoggerEntry]

    @property
    def keys(self) -> List[str]:
        return list(self.loggers)

    def entry(self, key: Union[str, Category]) -> Optional[LoggerEntry]:
        return self.loggers.get(category_key(key))

    def display_name(self, key: Union[str, Category]) -> str:
        entry = self.entry(key)
        return entry.category if entry else category_key(key)

    def required_fields(
        self, key: Union[str, Category], method: Union[str, Method],
    ) -> List[str]:
        """Ordered, de-duplicated ``common[method] ∪ custom[key][method]``."""
        method = Method.parse(method)
        fields = list(self.common.required_fields.get(method, []))
        entry = self.entry(key)
        if entry is not None:
            fields.extend(entry.custom_required_fields.get(method, []))
        return list(dict.fromkeys(fields))

    def redact_paths(self, key: Union[str, Category]) -> List[str]:
        paths = list(self.common.redact_fields)
        entry = self.entry(key)
        if entry is not None:
            paths.extend(entry.redact_fields)
        return list(dict.fromkeys(paths))


# ═══════════════════════════════════════════════════════════════════════════
# Loading
# ═══════════════════════════════════════════════════════════════════════════

def _format_problem(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
    return f"{location}: {error.get('msg', 'invalid value')}"


def load_schema(raw: Any) -> LoggerSchema:
    """Validate raw configuration data (already parsed from JSON)."""
    if not isinstance(raw, Mapping):
        raise ConfigError(
            f"Logger schema must be a JSON object, got {type(raw).__name__}"
        )
    if "loggers" not in raw:
        raise ConfigError("Logger schema is missing the 'loggers' section")

    try:
        schema = LoggerSchema.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigError(
            "Invalid logger schema",
            [_format_problem(err) for err in exc.errors()],
        ) from exc

    logger.debug("Logger schema loaded: %s", ", ".join(schema.keys) or "<none>")
    return schema


def load_schema_file(path: Optional[Union[str, Path]] = None) -> LoggerSchema:
    """Read and validate a Schema file. Defaults to the bundled loggers.json."""
    source = Path(path) if path else DEFAULT_SCHEMA_PATH
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read logger schema {source}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Logger schema {source} is not valid JSON: {exc}") from exc
    return load_schema(raw)
