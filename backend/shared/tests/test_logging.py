"""setup_logging as the SlipTalk server uses it: stdout, optional log file, env-driven format and level."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from shared.logging import _serialize_enums, event_processors, setup_logging
from sliptalk.phrases.types import GenerationOutcome


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture(autouse=True)
def _allow_file_logging():
    """Let setup_logging open its log file even though pytest is running."""
    with patch("shared.logging._is_test", return_value=False):
        yield


class TestSetupLogging:
    def test_configures_stdout_handler(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging()
        root = logging.getLogger()

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_returns_none_without_log_dir(self):
        assert setup_logging() is None

    def test_file_handler_in_log_dir(self, tmp_path):
        log_dir = tmp_path / "sliptalk"
        log_path = setup_logging(log_dir=log_dir)
        root = logging.getLogger()

        assert len(root.handlers) == 2
        assert isinstance(root.handlers[1], logging.FileHandler)
        assert log_path is not None
        assert log_path.parent == log_dir
        assert Path(root.handlers[1].baseFilename) == log_path

    def test_log_file_named_by_datetime(self, tmp_path):
        fixed_time = datetime(2025, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=tmp_path)

        assert log_path is not None
        assert log_path.name == "2025-03-15_10-30-45.log"

    def test_skips_file_under_pytest(self, tmp_path):
        with patch("shared.logging._is_test", return_value=True):
            assert setup_logging(log_dir=tmp_path / "logs") is None
        assert not (tmp_path / "logs").exists()

    def test_writes_events_to_file(self, tmp_path):
        log_path = setup_logging(log_dir=tmp_path / "nested" / "dir")

        structlog.get_logger("test.file").info("dealt batch", game_id="g1")

        assert log_path is not None
        assert "dealt batch" in log_path.read_text()

    def test_repeated_calls_do_not_stack_handlers(self):
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_explicit_level_wins(self):
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        setup_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_invalid_level_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            setup_logging()

    def test_http_client_loggers_quieted(self):
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_json_mode_writes_json_lines(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path)

        structlog.contextvars.bind_contextvars(game_id="party")
        structlog.get_logger("test.json").info("created game", name="Party")

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["event"] == "created game"
        assert parsed["game_id"] == "party"
        assert parsed["name"] == "Party"

    def test_invalid_format_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()


class TestSerializeEnums:
    def test_replaces_outcome_with_value(self):
        result = _serialize_enums(None, "", {"outcome": GenerationOutcome.RATE_LIMITED, "game_id": "g1"})
        assert result == {"outcome": "rate_limited", "game_id": "g1"}
        assert type(result["outcome"]) is str

    def test_replaces_enum_inside_dict_value(self):
        result = _serialize_enums(None, "", {"counts": {"outcome": GenerationOutcome.UPSTREAM_ERROR, "batches": 3}})
        assert result["counts"] == {"outcome": "upstream_error", "batches": 3}


class TestEventProcessors:
    def test_outcome_logged_as_plain_value_in_json_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path)

        structlog.get_logger("sliptalk.play").info("dealt batch", outcome=GenerationOutcome.OK)

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["outcome"] == "ok"
        assert parsed["level"] == "info"

    def test_chain_ends_with_stdlib_handoff(self):
        assert event_processors()[-1] is structlog.stdlib.ProcessorFormatter.wrap_for_formatter
