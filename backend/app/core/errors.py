"""
Centralised error handling — error taxonomy + FastAPI handlers.

Provides:
    • ConfigError        — malformed logger Schema (fatal at startup)
    • MissingFieldsError — a log call lacks required fields (never swallowed)
    • DomainError        — one tagged error type for every request failure
    • Consistent JSON error envelope
    • Exception handlers that route DomainErrors through the correlator

Usage:
    from backend.app.core.errors import DomainError, register_error_handlers

    raise DomainError.authentication(
        "Invalid credentials",
        logger={"category": "authentication", "code": "AUTH_FAILED",
                "context": "login"},
    )
"""

from __future__ import annotations

import errno as _errno
import logging
import traceback
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.config import settings
from backend.app.observability.outcomes import (
    LoggerMetadata,
    MetadataInput,
    coerce_metadata,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Pipeline Integrity Errors
# ═══════════════════════════════════════════════════════════════════════════

class ConfigError(ValueError):
    """The logger Schema is malformed. There is no fallback logger."""

    def __init__(self, message: str, problems: Optional[Iterable[str]] = None):
        self.problems: List[str] = list(problems or [])
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class MissingFieldsError(ValueError):
    """A log call omitted fields required for its (category, method)."""

    def __init__(self, logger_key: str, method: str, missing: List[str]):
        self.logger_key = logger_key
        self.method = method
        self.missing = list(missing)
        super().__init__(
            f"Missing required fields for {logger_key}.{method}: "
            f"{', '.join(self.missing)}"
        )


# ═══════════════════════════════════════════════════════════════════════════
# Domain Errors
# ═══════════════════════════════════════════════════════════════════════════

class ErrorKind(str, Enum):
    VALIDATION     = "validation"
    AUTHENTICATION = "authentication"
    FILESYSTEM     = "filesystem"
    DATABASE       = "database"
    EXTERNAL       = "external"
    GENERIC        = "generic"


# kind → (default status, default message)
KIND_DEFAULTS: Dict[ErrorKind, tuple] = {
    ErrorKind.VALIDATION:     (400, "Validation failure"),
    ErrorKind.AUTHENTICATION: (401, "Authentication failed"),
    ErrorKind.FILESYSTEM:     (500, "File system error"),
    ErrorKind.DATABASE:       (500, "Database operation failed"),
    ErrorKind.EXTERNAL:       (502, "External service request failed"),
    ErrorKind.GENERIC:        (500, "An error occurred"),
}

FS_ERROR_MESSAGES: Dict[str, str] = {
    "EACCES": "Permission denied.",
    "ENOENT": "File or directory does not exist.",
    "EBUSY": "Resource is busy or locked.",
    "EEXIST": "File or directory already exists.",
    "EPERM": "Operation not permitted.",
    "ENOTDIR": "Expected a directory but found something else.",
}


class DomainError(Exception):
    """
    Request-scoped failure.

    Every kind is logged the same way: the status code decides the
    severity, the attached LoggerMetadata decides the category.
    Kind-specific values (e.g. a filesystem path) go in ``details``.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        kind: ErrorKind = ErrorKind.GENERIC,
        status_code: Optional[int] = None,
        cause: Any = None,
        data: Any = None,
        logger: MetadataInput = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        kind = ErrorKind(kind)
        default_status, default_message = KIND_DEFAULTS[kind]
        self.kind = kind
        self.status_code = status_code if status_code is not None else default_status
        self.message = message or default_message
        self.cause = cause
        self.data = data
        self.logger: Optional[LoggerMetadata] = coerce_metadata(logger)
        self.details = details or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"DomainError(kind={self.kind.value!r}, "
            f"status_code={self.status_code}, message={self.message!r})"
        )

    # ── Factories ──

    @classmethod
    def validation(cls, message: Optional[str] = None, **kwargs: Any) -> "DomainError":
        return cls(message, kind=ErrorKind.VALIDATION, **kwargs)

    @classmethod
    def authentication(cls, message: Optional[str] = None, **kwargs: Any) -> "DomainError":
        return cls(message, kind=ErrorKind.AUTHENTICATION, **kwargs)

    @classmethod
    def database(cls, message: Optional[str] = None, **kwargs: Any) -> "DomainError":
        return cls(message, kind=ErrorKind.DATABASE, **kwargs)

    @classmethod
    def generic(cls, message: Optional[str] = None, **kwargs: Any) -> "DomainError":
        return cls(message, kind=ErrorKind.GENERIC, **kwargs)

    @classmethod
    def from_os_error(
        cls,
        exc: OSError,
        *,
        logger: MetadataInput = None,
        status_code: int = 500,
    ) -> "DomainError":
        """Wrap an OSError with a readable message for its errno."""
        code = _errno.errorcode.get(exc.errno) if exc.errno is not None else None
        message = FS_ERROR_MESSAGES.get(code or "", f"Unknown error: {exc}")
        details: Dict[str, Any] = {"errno": code}
        if exc.filename is not None:
            details["path"] = str(exc.filename)
        return cls(
            message,
            kind=ErrorKind.FILESYSTEM,
            status_code=status_code,
            cause=exc,
            logger=logger,
            details=details,
        )

    @classmethod
    def from_http_error(
        cls,
        exc: httpx.HTTPError,
        *,
        logger: MetadataInput = None,
    ) -> "DomainError":
        """Wrap an httpx failure; the upstream status is kept when known."""
        status_code = KIND_DEFAULTS[ErrorKind.EXTERNAL][0]
        data: Any = None
        details: Dict[str, Any] = {}

        if isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code
            try:
                data = exc.response.json()
            except ValueError:
                data = exc.response.text or None
            details["url"] = str(exc.request.url)
        elif isinstance(exc, httpx.RequestError):
            try:
                details["url"] = str(exc.request.url)
            except RuntimeError:
                pass  # request not attached

        return cls(
            str(exc) or None,
            kind=ErrorKind.EXTERNAL,
            status_code=status_code,
            cause=exc,
            data=data,
            logger=logger,
            details=details,
        )


# ═══════════════════════════════════════════════════════════════════════════
# Error Envelope
# ═══════════════════════════════════════════════════════════════════════════

def build_error_envelope(
    exc: BaseException,
    *,
    include_stack: bool,
    message: Optional[str] = None,
    data: Any = None,
) -> Dict[str, Any]:
    """``{"error": true, "message", "data", "stack"}`` for any exception."""
    if message is None:
        message = getattr(exc, "message", None) or str(exc) or "An unexpected error occurred"
    if data is None:
        data = getattr(exc, "data", None)

    envelope: Dict[str, Any] = {
        "error": True,
        "message": message,
        "data": data,
    }
    # Left out entirely (not null) when the stack must stay private
    if include_stack:
        envelope["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return envelope


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError):
        # A MissingFieldsError from the correlator is left to propagate.
        request.app.state.correlator.dispatch(exc)
        logger.debug(
            "DomainError [%s] %d: %s", exc.kind.value, exc.status_code, exc.message,
        )
        config = request.app.state.settings
        return JSONResponse(
            status_code=exc.status_code,
            content=build_error_envelope(exc, include_stack=not config.is_production),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        logger.warning("Request validation failed on %s", request.url.path)
        return JSONResponse(
            status_code=400,
            content=build_error_envelope(
                exc,
                include_stack=False,
                message="Invalid request data",
                data=jsonable_errors(exc),
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )
        config = getattr(request.app.state, "settings", settings)
        message = str(exc) if config.DEBUG else "Internal server error"
        return JSONResponse(
            status_code=500,
            content=build_error_envelope(
                exc,
                include_stack=config.DEBUG and not config.is_production,
                message=message,
            ),
        )


def jsonable_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(loc) for loc in err.get("loc", ())),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
