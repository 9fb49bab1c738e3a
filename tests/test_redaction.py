"""
test_redaction.py — Censoring configured field paths.

Run with:
    pytest tests/test_redaction.py -v
"""

from __future__ import annotations

import pytest

from backend.app.observability.redaction import RedactionEngine, parse_path, redact
from backend.app.observability.types import CENSOR


class TestParsePath:
    def test_dotted(self):
        assert parse_path("headers.authorization") == ("headers", "authorization")

    def test_ignores_empty_segments(self):
        assert parse_path(".a..b.") == ("a", "b")


class TestRedact:
    """Module-level redact()."""

    @pytest.mark.parametrize("value", ["s3cret", 1234, None, {"nested": 1}, [1, 2], True])
    def test_top_level_any_type(self, value):
        out = redact({"password": value, "user": "ada"}, ["password"])
        assert out == {"password": CENSOR, "user": "ada"}

    def test_nested_path(self):
        payload = {"headers": {"authorization": "Bearer x", "accept": "json"}}
        out = redact(payload, ["headers.authorization"])
        assert out == {"headers": {"authorization": CENSOR, "accept": "json"}}

    def test_absent_path_ignored(self):
        payload = {"code": "X"}
        assert redact(payload, ["password", "headers.authorization"]) == {"code": "X"}

    def test_path_through_scalar_ignored(self):
        payload = {"headers": "raw"}
        assert redact(payload, ["headers.authorization"]) == {"headers": "raw"}

    def test_input_not_mutated(self):
        payload = {"password": "p", "headers": {"authorization": "a"}}
        redact(payload, ["password", "headers.authorization"])
        assert payload == {"password": "p", "headers": {"authorization": "a"}}

    def test_wildcard_over_keys(self):
        payload = {
            "primary": {"password": "a", "name": "x"},
            "backup": {"password": "b"},
            "note": "free text",
        }
        out = redact(payload, ["*.password"])
        assert out["primary"] == {"password": CENSOR, "name": "x"}
        assert out["backup"] == {"password": CENSOR}
        assert out["note"] == "free text"

    def test_list_index_and_wildcard(self):
        payload = {"users": [{"token": "t1"}, {"token": "t2"}, {"name": "n"}]}
        assert redact(payload, ["users.1.token"])["users"] == [
            {"token": "t1"}, {"token": CENSOR}, {"name": "n"},
        ]
        assert redact(payload, ["users.*.token"])["users"] == [
            {"token": CENSOR}, {"token": CENSOR}, {"name": "n"},
        ]

    def test_out_of_range_index_ignored(self):
        payload = {"users": [{"token": "t1"}]}
        assert redact(payload, ["users.5.token"]) == payload

    def test_non_mapping_payload_returned_as_is(self):
        assert redact("text", ["password"]) == "text"

    def test_custom_censor(self):
        assert redact({"password": "x"}, ["password"], censor="***") == {"password": "***"}


class TestRedactionEngine:
    def test_paths_deduplicated(self):
        engine = RedactionEngine(["password", "token", "password"])
        assert engine.paths == ("password", "token")

    def test_no_paths_returns_copy(self):
        engine = RedactionEngine([])
        payload = {"a": 1}
        out = engine.redact(payload)
        assert out == payload
        assert out is not payload

    def test_unconfigured_paths_pass_through(self):
        engine = RedactionEngine(["password"])
        payload = {"password": "p", "code": "C", "context": {"k": "v"}}
        out = engine.redact(payload)
        assert out["password"] == CENSOR
        assert out["code"] == "C"
        assert out["context"] == {"k": "v"}
