"""Tests for shared/logging.py."""

import json
import logging

import pytest

from shared.logging import JsonLogFormatter, setup_logging


def make_record(message: str = "profile reconciled", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="modules.profiles.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonLogFormatter:
    def test_basic_fields(self):
        payload = json.loads(JsonLogFormatter().format(make_record()))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "modules.profiles.service"
        assert payload["message"] == "profile reconciled"
        assert "timestamp" in payload

    def test_known_extras(self):
        payload = json.loads(
            JsonLogFormatter().format(make_record(subject_id="uid-1", anchor_id="", unknown="x"))
        )

        assert payload["subject_id"] == "uid-1"
        assert "anchor_id" not in payload
        assert "unknown" not in payload

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = make_record()
            record.exc_info = sys.exc_info()

        payload = json.loads(JsonLogFormatter().format(record))

        assert "RuntimeError: boom" in payload["exception"]


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_replaces_handlers(self):
        setup_logging("DEBUG")
        setup_logging("WARNING")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_json_output(self):
        setup_logging("INFO", json_output=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonLogFormatter)

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty")
        assert logging.getLogger().level == logging.INFO
