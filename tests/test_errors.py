"""
test_errors.py — DomainError kinds, factories and the error envelope.

Run with:
    pytest tests/test_errors.py -v
"""

from __future__ import annotations

import errno

import httpx
import pytest

from backend.app.core.errors import (
    KIND_DEFAULTS,
    ConfigError,
    DomainError,
    ErrorKind,
    MissingFieldsError,
    build_error_envelope,
)
from backend.app.observability.outcomes import LoggerMetadata


def _raised(exc):
    try:
        raise exc
    except Exception as caught:
        return caught


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: DomainError
# ═══════════════════════════════════════════════════════════════════════════

class TestDomainError:

    @pytest.mark.parametrize("kind", list(ErrorKind))
    def test_kind_defaults(self, kind):
        err = DomainError(kind=kind)
        status_code, message = KIND_DEFAULTS[kind]
        assert err.status_code == status_code
        assert err.message == message
        assert str(err) == message

    def test_validation_defaults_to_400(self):
        assert DomainError.validation().status_code == 400

    def test_authentication_defaults_to_401(self):
        assert DomainError.authentication().status_code == 401

    def test_explicit_values_win(self):
        err = DomainError.generic("Gone", status_code=410, data={"id": 1})
        assert (err.status_code, err.message, err.data) == (410, "Gone", {"id": 1})

    def test_kind_from_string(self):
        assert DomainError(kind="database").kind is ErrorKind.DATABASE

    def test_metadata_coerced(self):
        err = DomainError.database(
            logger={"category": "system", "code": "DB", "context": "q", "table": "t"},
        )
        assert isinstance(err.logger, LoggerMetadata)
        assert err.logger.category == "system"
        assert err.logger.extra == {"table": "t"}

    def test_no_metadata(self):
        assert DomainError().logger is None


class TestFromOSError:

    def test_known_errno(self):
        exc = FileNotFoundError(errno.ENOENT, "No such file or directory", "/tmp/missing")
        err = DomainError.from_os_error(exc)
        assert err.kind is ErrorKind.FILESYSTEM
        assert err.status_code == 500
        assert err.message == "File or directory does not exist."
        assert err.details == {"errno": "ENOENT", "path": "/tmp/missing"}
        assert err.cause is exc

    def test_permission_denied(self):
        err = DomainError.from_os_error(PermissionError(errno.EACCES, "denied"))
        assert err.message == "Permission denied."
        assert "path" not in err.details

    def test_unknown_errno(self):
        exc = OSError(errno.EIO, "I/O error")
        err = DomainError.from_os_error(exc, status_code=503)
        assert err.message.startswith("Unknown error:")
        assert err.status_code == 503

    def test_no_errno(self):
        err = DomainError.from_os_error(OSError("plain"))
        assert err.details == {"errno": None}


class TestFromHttpError:

    def test_status_error_keeps_upstream_status(self):
        request = httpx.Request("GET", "https://api.example.com/items/9")
        response = httpx.Response(404, json={"detail": "missing"}, request=request)
        exc = httpx.HTTPStatusError("Not Found", request=request, response=response)

        err = DomainError.from_http_error(exc, logger={"category": "system"})
        assert err.kind is ErrorKind.EXTERNAL
        assert err.status_code == 404
        assert err.data == {"detail": "missing"}
        assert err.details["url"] == "https://api.example.com/items/9"
        assert err.message == "Not Found"

    def test_non_json_body(self):
        request = httpx.Request("GET", "https://api.example.com/")
        response = httpx.Response(500, text="upstream exploded", request=request)
        exc = httpx.HTTPStatusError("Server Error", request=request, response=response)
        assert DomainError.from_http_error(exc).data == "upstream exploded"

    def test_transport_error_is_bad_gateway(self):
        request = httpx.Request("GET", "https://api.example.com/")
        exc = httpx.ConnectError("connection refused", request=request)
        err = DomainError.from_http_error(exc)
        assert err.status_code == 502
        assert err.details["url"] == "https://api.example.com/"

    def test_transport_error_without_request(self):
        err = DomainError.from_http_error(httpx.ConnectError("refused"))
        assert err.status_code == 502
        assert err.details == {}


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Envelope
# ═══════════════════════════════════════════════════════════════════════════

class TestErrorEnvelope:

    def test_without_stack(self):
        err = _raised(DomainError.validation("Bad input", data={"field": "email"}))
        body = build_error_envelope(err, include_stack=False)
        assert body == {"error": True, "message": "Bad input", "data": {"field": "email"}}
        assert "stack" not in body

    def test_with_stack(self):
        err = _raised(DomainError.generic("Boom"))
        body = build_error_envelope(err, include_stack=True)
        assert "DomainError" in body["stack"]
        assert "Traceback" in body["stack"]

    def test_plain_exception(self):
        body = build_error_envelope(_raised(RuntimeError("kaput")), include_stack=False)
        assert body == {"error": True, "message": "kaput", "data": None}

    def test_message_override(self):
        body = build_error_envelope(
            _raised(RuntimeError("secret detail")),
            include_stack=False,
            message="Internal server error",
        )
        assert body["message"] == "Internal server error"


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: Pipeline integrity errors
# ═══════════════════════════════════════════════════════════════════════════

class TestIntegrityErrors:

    def test_missing_fields_message(self):
        err = MissingFieldsError("usage", "info", ["code", "context"])
        assert str(err) == "Missing required fields for usage.info: code, context"

    def test_config_error_lists_problems(self):
        err = ConfigError("Invalid logger schema", ["loggers.usage.category: required"])
        assert err.problems == ["loggers.usage.category: required"]
        assert "loggers.usage.category" in str(err)

    def test_config_error_without_problems(self):
        assert str(ConfigError("plain")) == "plain"
