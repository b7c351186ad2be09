# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Structured logging configuration for the PoI engine.

Provides:
- JSON formatter for production (machine-parseable)
- Standard formatter for development (human-readable)
- Operation context (operation id + identity) carried on every log line
  emitted while an engine call is running
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variables for the engine call currently in progress (thread/async-safe)
_operation_id: ContextVar[str | None] = ContextVar("operation_id", default=None)
_operation_name: ContextVar[str | None] = ContextVar("operation_name", default=None)
_identity: ContextVar[str | None] = ContextVar("identity", default=None)


def get_operation_id() -> str | None:
    """Get the id of the engine operation in progress, if any."""
    return _operation_id.get()


def get_operation_name() -> str | None:
    """Get the name of the engine operation in progress, if any."""
    return _operation_name.get()


def get_identity() -> str | None:
    """Get the identity the current operation targets, if any."""
    return _identity.get()


def generate_operation_id() -> str:
    """Generate a new unique operation ID."""
    return str(uuid.uuid4())


@contextmanager
def operation_context(
    operation: str,
    identity: str | None = None,
    operation_id: str | None = None,
) -> Generator[str, None, None]:
    """Bind an operation id and target identity for the enclosed block.

    Nested contexts keep the outer operation id so a decay surfaced inside
    a maintenance request logs under the request that caused it.

    Example:
        with operation_context("submit_answer", identity) as op_id:
            logger.info("Answer accepted")  # carries op_id and identity
    """
    oid = operation_id or _operation_id.get() or generate_operation_id()
    tokens = (
        _operation_id.set(oid),
        _operation_name.set(operation),
        _identity.set(identity),
    )
    try:
        yield oid
    finally:
        _identity.reset(tokens[2])
        _operation_name.reset(tokens[1])
        _operation_id.reset(tokens[0])


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production environments.

    Produces structured logs that can be parsed by log aggregation tools.
    Includes the operation context when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        operation_id = get_operation_id()
        if operation_id:
            log_data["operation_id"] = operation_id
            log_data["operation"] = get_operation_name()
        identity = get_identity()
        if identity:
            log_data["identity"] = identity

        # Add source location for errors
        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Standard log formatter for development.

    Human-readable format with colors for terminal output.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    CONTEXT_COLOR = "\033[90m"  # Gray

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers see the untouched record
        record = logging.makeLogRecord(record.__dict__)

        operation_id = get_operation_id()
        if operation_id:
            prefix = f"[{operation_id[:8]} {get_operation_name()}"
            identity = get_identity()
            if identity:
                prefix += f" {identity[:10]}"
            prefix += "]"
            if self.use_colors:
                prefix = f"{self.CONTEXT_COLOR}{prefix}{self.RESET}"
            record.msg = f"{prefix} {record.msg}"

        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


def configure_logging(
    level: str | int = "INFO",
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Configure logging for PoI services.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (auto-detect if None)
        log_file: Optional file to write logs to

    Environment variables:
        POI_LOG_LEVEL: Override log level
        POI_LOG_FORMAT: Log format ("json" or "text", auto-detect if unset)
        POI_LOG_FILE: Log file path
    """
    from .config import get_config

    config = get_config()

    level = config.log_level if level == "INFO" else level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_format is None:
        format_env = config.log_format.lower()
        if format_env == "json":
            json_format = True
        elif format_env == "text":
            json_format = False
        else:
            # Auto-detect: use JSON if not in a terminal
            json_format = not sys.stderr.isatty()

    log_file = config.log_file if log_file is None else log_file

    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        # Always use JSON for file output
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("redis").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)
