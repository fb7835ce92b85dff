"""
Tests for the JSON logging infrastructure.
"""
import json
import logging
import sys
from datetime import date

import pytest

from statement_intel.common.logging_config import (JSONFormatter, PipelineLoggerAdapter, get_logger,
                                                   get_session_id, set_session_id, setup_logging)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    set_session_id(None)


def make_record(msg="Test message", **extra_fields):
    record = logging.LogRecord("statement_intel.test", logging.INFO, __file__, 10, msg, None, None)
    if extra_fields:
        record.extra_fields = extra_fields
    return record


class TestJSONFormatter:

    def test_includes_session_and_extra_fields(self):
        set_session_id("S-42")
        try:
            data = json.loads(JSONFormatter().format(make_record(bank="HSBC", tx_count=3)))
        finally:
            set_session_id(None)

        assert data["message"] == "Test message"
        assert data["level"] == "INFO"
        assert data["session_id"] == "S-42"
        assert data["bank"] == "HSBC"
        assert data["tx_count"] == 3

    def test_exception_info(self):
        try:
            raise ValueError("bad statement")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad statement" in data["exception"]
        assert "stack_trace" in data

    def test_non_serialisable_values_are_stringified(self):
        data = json.loads(JSONFormatter().format(make_record(day=date(2024, 1, 1))))
        assert data["day"] == "2024-01-01"


class TestSessionContext:

    def test_default_is_global(self):
        set_session_id(None)
        assert get_session_id() == "GLOBAL"

    def test_set_and_reset(self):
        set_session_id("S-1")
        assert get_session_id() == "S-1"
        set_session_id(None)
        assert get_session_id() == "GLOBAL"


class TestAdapter:

    def test_keyword_arguments_become_extra_fields(self):
        adapter = PipelineLoggerAdapter(logging.getLogger("x"), {})
        msg, kwargs = adapter.process("hello", {"exc_info": True, "bank": "NatWest"})

        assert msg == "hello"
        assert kwargs["exc_info"] is True
        assert kwargs["extra"]["extra_fields"] == {"bank": "NatWest"}

    def test_setup_logging_writes_json_lines(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(log_level=logging.DEBUG, log_file=str(log_file))

        set_session_id("S-7")
        get_logger("statement_intel.test").info("Statement parsed.", tx_count=12)
        for handler in restore_root_logger.handlers:
            handler.flush()

        entries = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        parsed = [e for e in entries if e["message"] == "Statement parsed."]

        assert entries[0]["status"] == "ready"
        assert parsed[0]["session_id"] == "S-7"
        assert parsed[0]["tx_count"] == 12
