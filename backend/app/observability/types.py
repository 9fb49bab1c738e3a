"""
types.py — Shared vocabulary of the category logging pipeline.

Defines:
    • Category — routing keys of the built-in category loggers
    • Method   — severity methods, each with its own required-field list
    • CENSOR   — value substituted for every redacted field
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Union

CENSOR = "[Redacted]"

# Numeric level for "trace" (below stdlib DEBUG)
TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")


class Category(str, Enum):
    """Built-in categories. A Schema may register additional keys."""
    SYSTEM         = "system"
    AUTHENTICATION = "authentication"
    VALIDATION     = "validation"
    USAGE          = "usage"


class Method(str, Enum):
    """Severity methods available on every category logger."""
    TRACE = "trace"
    DEBUG = "debug"
    INFO  = "info"
    WARN  = "warn"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def levelno(self) -> int:
        return _LEVELNO[self]

    @property
    def label(self) -> str:
        """Upper-case label written as the record's ``type`` field."""
        return self.value.upper()

    @classmethod
    def parse(cls, value: Union[str, "Method"]) -> "Method":
        if isinstance(value, Method):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown log method '{value}'. "
                f"Valid: {', '.join(m.value for m in cls)}"
            ) from None


_LEVELNO = {
    Method.TRACE: TRACE_LEVEL,
    Method.DEBUG: logging.DEBUG,
    Method.INFO:  logging.INFO,
    Method.WARN:  logging.WARNING,
    Method.ERROR: logging.ERROR,
    Method.FATAL: logging.CRITICAL,
}


def category_key(category: Union[str, Category]) -> str:
    """Normalise a Category or plain string into a registry key."""
    if isinstance(category, Category):
        return category.value
    return str(category)
