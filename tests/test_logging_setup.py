# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for logging setup."""

import json
import logging
import sys
import tempfile
from pathlib import Path

from project_closure.logging_setup import StructuredFormatter, setup_logging


def test_setup_logging_creates_directory():
    """Test that setup_logging creates the log directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_dir = Path(tmpdir) / ".project_closure_logs"
        assert not log_dir.exists()

        setup_logging(log_dir=log_dir, console_output=False)

        assert log_dir.exists()
        assert log_dir.is_dir()
        logging.getLogger().handlers.clear()


def test_logging_produces_json():
    """Test that logs are written in JSON format."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_dir = Path(tmpdir) / ".project_closure_logs"

        setup_logging(log_dir=log_dir, log_level=logging.INFO, console_output=False)

        logger = logging.getLogger("test_logger")
        logger.info("Test message")
        for handler in logging.getLogger().handlers:
            handler.flush()

        log_files = list(log_dir.glob("project_closure_*.log"))
        assert len(log_files) == 1

        log_lines = [line for line in log_files[0].read_text().splitlines() if line]

        # Startup message + test message
        assert len(log_lines) >= 2

        for line in log_lines:
            log_entry = json.loads(line)
            assert "timestamp" in log_entry
            assert "level" in log_entry
            assert "logger" in log_entry
            assert "message" in log_entry

        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()


def test_logging_levels():
    """Test that messages below the configured level are dropped."""
    with tempfile.TemporaryDirectory() as tmpdir:
        log_dir = Path(tmpdir) / ".project_closure_logs"

        setup_logging(log_dir=log_dir, log_level=logging.WARNING, console_output=False)

        logger = logging.getLogger("test_logger")
        logger.info("Info message")
        logger.warning("Warning message")
        for handler in logging.getLogger().handlers:
            handler.flush()

        log_files = list(log_dir.glob("*.log"))
        entries = [json.loads(line) for line in log_files[0].read_text().splitlines() if line]
        levels = [entry["level"] for entry in entries]

        assert "INFO" not in levels
        assert "WARNING" in levels

        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()


def test_console_only_creates_no_files(tmp_path: Path, monkeypatch):
    """Test that disabling file output writes nothing to disk."""
    monkeypatch.chdir(tmp_path)

    setup_logging(file_output=False)

    root_logger = logging.getLogger()
    assert len(root_logger.handlers) == 1
    assert root_logger.handlers[0].stream is sys.stderr
    assert list(tmp_path.iterdir()) == []
    root_logger.handlers.clear()


def test_structured_formatter_includes_exception_and_extra_fields():
    """Test that exceptions and extra_fields are serialized."""
    formatter = StructuredFormatter()
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord(
            "project_closure.resolver", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )
    record.extra_fields = {"root": "App.csproj", "visited": 3}

    entry = json.loads(formatter.format(record))

    assert entry["level"] == "ERROR"
    assert entry["logger"] == "project_closure.resolver"
    assert entry["message"] == "failed"
    assert "ValueError: boom" in entry["exception"]
    assert entry["root"] == "App.csproj"
    assert entry["visited"] == 3
    assert entry["timestamp"].endswith("Z")
