"""
test_sinks.py — Stdlib LoggingSink and file destinations.

Run with:
    pytest tests/test_sinks.py -v
"""

from __future__ import annotations

import json
import logging
from datetime import date

import pytest

from backend.app.core.config import Settings
from backend.app.observability.sinks import (
    LoggingSink,
    build_destinations,
    create_sink_factory,
    generate_log_file_path,
)
from backend.app.observability.types import Method

DAY = date(2024, 1, 1)


def _read_lines(path):
    with open(path, encoding="utf-8") as fh:
        return [json.loads(line) for line in fh if line.strip()]


def _make_sink(tmp_path, level="debug", file_levels=("error", "warn", "info")):
    handlers = build_destinations(
        "Usage",
        log_dir=str(tmp_path),
        file_levels=file_levels,
        console_enabled=False,
        day=DAY,
    )
    return LoggingSink("usage", "Usage", handlers, level=level)


class TestGenerateLogFilePath:

    def test_convention(self):
        assert (
            generate_log_file_path("System", "error", DAY)
            == "./logs/System/error/error-2024-01-01.log"
        )

    def test_custom_root(self):
        assert (
            generate_log_file_path("Usage", Method.WARN, DAY, root="/var/log/app/")
            == "/var/log/app/Usage/warn/warn-2024-01-01.log"
        )

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            generate_log_file_path("System", "verbose", DAY)


class TestBuildDestinations:

    def test_file_handlers_created(self, tmp_path):
        handlers = build_destinations(
            "System", log_dir=str(tmp_path), console_enabled=False, day=DAY,
        )
        try:
            assert [h.level for h in handlers] == [40, 30, 20]
            assert (tmp_path / "System" / "warn").is_dir()
        finally:
            for h in handlers:
                h.close()

    def test_console_only(self, tmp_path):
        handlers = build_destinations("System", log_dir=str(tmp_path), file_enabled=False)
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert not (tmp_path / "System").exists()


class TestLoggingSink:

    def test_records_reach_level_files(self, tmp_path):
        sink = _make_sink(tmp_path)
        sink.emit(Method.INFO, {"code": "I", "context": "c"}, "hello")
        sink.emit(Method.WARN, {"code": "W", "context": "c"}, "careful")
        sink.emit(Method.ERROR, {"code": "E", "context": "c"}, "broken")
        sink.close()

        info = _read_lines(generate_log_file_path("Usage", "info", DAY, root=str(tmp_path)))
        warn = _read_lines(generate_log_file_path("Usage", "warn", DAY, root=str(tmp_path)))
        error = _read_lines(generate_log_file_path("Usage", "error", DAY, root=str(tmp_path)))

        assert [e["code"] for e in info] == ["I", "W", "E"]
        assert [e["code"] for e in warn] == ["W", "E"]
        assert [e["code"] for e in error] == ["E"]

    def test_json_line_shape(self, tmp_path):
        sink = _make_sink(tmp_path, file_levels=("error",))
        sink.emit(Method.ERROR, {"code": "E", "context": "c", "n": 1}, "broken")
        sink.close()

        [entry] = _read_lines(generate_log_file_path("Usage", "error", DAY, root=str(tmp_path)))
        assert entry["level"] == 40
        assert entry["type"] == "ERROR"
        assert entry["category"] == "Usage"
        assert entry["msg"] == "broken"
        assert entry["n"] == 1
        assert "time" in entry

    def test_record_keys_win_over_payload(self, tmp_path):
        sink = _make_sink(tmp_path, file_levels=("error",))
        sink.emit(
            Method.ERROR,
            {"type": "x", "category": "y", "level": "z", "msg": "m", "n": 1},
            "broken",
        )
        sink.close()

        [entry] = _read_lines(generate_log_file_path("Usage", "error", DAY, root=str(tmp_path)))
        assert list(entry) == ["time", "level", "n", "type", "category", "msg"]
        assert (entry["level"], entry["type"], entry["category"], entry["msg"]) == (
            40, "ERROR", "Usage", "broken",
        )

    def test_level_gating(self, tmp_path):
        sink = _make_sink(tmp_path, level="warn", file_levels=("info",))
        sink.emit(Method.INFO, {"code": "I"}, "dropped")
        sink.emit(Method.WARN, {"code": "W"}, "kept")
        sink.close()

        lines = _read_lines(generate_log_file_path("Usage", "info", DAY, root=str(tmp_path)))
        assert [e["code"] for e in lines] == ["W"]

    def test_trace_below_default_level(self, tmp_path):
        sink = _make_sink(tmp_path, file_levels=("info",))
        sink.emit(Method.TRACE, {}, "too quiet")
        sink.close()
        assert _read_lines(generate_log_file_path("Usage", "info", DAY, root=str(tmp_path))) == []

    def test_close_is_idempotent(self, tmp_path):
        sink = _make_sink(tmp_path)
        sink.close()
        sink.close()

    def test_emit_after_close_is_dropped(self, tmp_path, caplog):
        sink = _make_sink(tmp_path, file_levels=("info",))
        sink.close()
        with caplog.at_level(logging.WARNING, logger="backend.app.observability.sinks"):
            sink.emit(Method.ERROR, {"code": "E"}, "late")

        assert sink._queue.empty()
        assert "closed" in caplog.text
        assert _read_lines(generate_log_file_path("Usage", "info", DAY, root=str(tmp_path))) == []

    def test_private_logger_does_not_propagate(self, tmp_path, caplog):
        sink = _make_sink(tmp_path, file_levels=())
        with caplog.at_level(logging.DEBUG):
            sink.emit(Method.ERROR, {"code": "E"}, "private")
            sink.close()
        assert "private" not in caplog.text


class TestSinkFactory:

    def test_factory_from_settings(self, tmp_path):
        config = Settings(
            LOG_DIR=str(tmp_path),
            LOG_FILE_ENABLED=True,
            LOG_FILE_LEVELS=["error"],
            LOG_CONSOLE_ENABLED=False,
            CATEGORY_LOG_LEVEL="info",
        )
        sink = create_sink_factory(config)("system", "System")
        try:
            assert sink.level is Method.INFO
            assert len(sink.handlers) == 1
            assert (tmp_path / "System" / "error").is_dir()
        finally:
            sink.close()
