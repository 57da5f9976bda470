from __future__ import annotations

import json
import logging
import sys

from kvbench.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_OPERATIONS = 10
EXPECTED_WATERMARK = 1000


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.operations = EXPECTED_OPERATIONS
    record.phase = "run"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["operations"] == EXPECTED_OPERATIONS
    assert payload["phase"] == "run"


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"watermark": EXPECTED_WATERMARK}

    payload = json.loads(_json_formatter(record))

    assert payload["watermark"] == EXPECTED_WATERMARK
    assert "extra" not in payload


def test_json_formatter_stringifies_unserialisable_values() -> None:
    record = _record()
    record.path = object()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["path"].startswith("<object object")


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            name="test.logger",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="failed",
            args=(),
            exc_info=sys.exc_info(),
        )

    payload = json.loads(_json_formatter(record))

    assert "RuntimeError: boom" in payload["exc_info"]


def test_configure_logging_installs_json_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(level="DEBUG", json_logs=True)
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_configure_logging_without_force_keeps_existing_handlers() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    sentinel = logging.NullHandler()
    try:
        root.handlers[:] = [sentinel]
        configure_logging(level="DEBUG", force=False)
        assert root.handlers == [sentinel]
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
