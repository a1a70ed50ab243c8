# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging setup for project closure resolution."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_DIRNAME = ".project_closure_logs"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add any extra fields
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
    file_output: bool = True,
) -> None:
    """Set up structured logging for the application.

    Args:
        log_dir: Directory for log files. If None, uses .project_closure_logs/
        log_level: Logging level (default: INFO)
        console_output: Whether to also output to console (default: True)
        file_output: Whether to write the JSON log file (default: True)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers
    root_logger.handlers.clear()

    if file_output:
        if log_dir is None:
            log_dir = Path.cwd() / DEFAULT_LOG_DIRNAME

        # Create log directory if it doesn't exist
        log_dir.mkdir(parents=True, exist_ok=True)

        # File handler with structured JSON logging
        log_file = log_dir / f"project_closure_{datetime.now(timezone.utc).strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # Console handler with human-readable format (if enabled)
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if file_output:
        logging.info(f"Logging initialized. Log directory: {log_dir}")
