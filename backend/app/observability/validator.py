"""
validator.py — Required-field contract for category log calls.

    required = common[method] ∪ custom[category][method]

    payload not a mapping, required non-empty  → every required field missing
    otherwise                                  → required − keys(payload)

Only presence is checked, never values, so redaction (which runs after)
cannot affect the outcome. The check is pure and synchronous; a failure
raises MissingFieldsError at the log-call site.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Union

from backend.app.core.errors import MissingFieldsError
from backend.app.observability.schema import LoggerSchema
from backend.app.observability.types import Category, Method, category_key


def missing_fields(required: List[str], payload: Any) -> List[str]:
    """Required fields absent from ``payload``, in ``required`` order."""
    if not required:
        return []
    if not isinstance(payload, Mapping):
        return list(required)
    return [name for name in required if name not in payload]


class FieldValidator:
    """Checks payloads against a Schema's merged required-field lists."""

    def __init__(self, schema: LoggerSchema):
        self._schema = schema

    def required_fields(
        self, category: Union[str, Category], method: Union[str, Method],
    ) -> List[str]:
        return self._schema.required_fields(category, method)

    def validate(
        self,
        category: Union[str, Category],
        method: Union[str, Method],
        payload: Any,
    ) -> None:
        """Raise MissingFieldsError unless every required field is present."""
        method = Method.parse(method)
        missing = missing_fields(self.required_fields(category, method), payload)
        if missing:
            raise MissingFieldsError(category_key(category), method.value, missing)

    def is_valid(
        self,
        category: Union[str, Category],
        method: Union[str, Method],
        payload: Any,
    ) -> bool:
        try:
            self.validate(category, method, payload)
        except MissingFieldsError:
            return False
        return True
