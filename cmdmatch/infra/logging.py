"""
cmdmatch Centralized Logging
----------------------------
Structured logging with match_id propagation, so every log line emitted while
one input is being matched can be traced back to that input.

Design:
- Every call to find_matching_command gets a unique match_id
- match_id lives in a ContextVar, so concurrent matches on one event loop
  never see each other's id
- Console output goes through Rich, file output is JSON lines
- Severity discipline: DEBUG=per-candidate decisions, INFO=registry changes
  and successful matches, WARNING=configuration fallbacks

Usage:
    from cmdmatch.infra.logging import get_logger, MatchContext

    logger = get_logger("commands.matcher")

    with MatchContext() as match_id:
        logger.debug("Trying definition 3")
"""

import contextvars
import json
import logging
import logging.handlers
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "cmdmatch"

_match_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "match_id", default=None
)


def generate_match_id() -> str:
    """Generate a unique match ID."""
    return f"match_{uuid.uuid4().hex[:12]}"


def get_match_id() -> Optional[str]:
    """Get the current match ID from context."""
    return _match_id_var.get()


class MatchContext:
    """
    Context manager scoping one match attempt.

    Usage:
        with MatchContext() as match_id:
            # All logs within this block carry match_id
            logger.debug("Matching...")
    """

    def __init__(self, match_id: Optional[str] = None):
        self._match_id = match_id or generate_match_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _match_id_var.set(self._match_id)
        return self._match_id

    def __exit__(self, *args) -> None:
        if self._token is not None:
            _match_id_var.reset(self._token)
            self._token = None


class MatchIdFilter(logging.Filter):
    """Logging filter that adds match_id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "match_id", None) is None:
            record.match_id = get_match_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    EXTRA_FIELDS = ("command_id", "trigger", "error_category", "field")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "match_id": getattr(record, "match_id", "-"),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in self.EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry)


# Global configuration state
_logging_initialized = False
_log_file_path: Optional[Path] = None


def configure_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    console: bool = True,
    file: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """
    Configure the cmdmatch logging system.

    The library never calls this itself; applications and the CLI do.

    Args:
        level: Logging level (default INFO)
        log_dir: Directory for log files (default: ./logs)
        console: Enable Rich console output
        file: Enable JSON file output
        max_bytes: Rotate the log file once it grows past this size
        backup_count: Number of rotated files to keep
    """
    global _logging_initialized, _log_file_path

    if _logging_initialized:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    match_filter = MatchIdFilter()

    if console:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter("[%(match_id)s] %(name)s: %(message)s"))
        console_handler.addFilter(match_filter)
        root_logger.addHandler(console_handler)

    if file:
        log_path = Path(log_dir) if log_dir else Path("logs")
        log_path.mkdir(parents=True, exist_ok=True)

        _log_file_path = log_path / "cmdmatch.log"

        file_handler = logging.handlers.RotatingFileHandler(
            str(_log_file_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)  # File gets everything
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(match_filter)
        root_logger.addHandler(file_handler)

    _logging_initialized = True


def reset_logging() -> None:
    """Remove installed handlers so configure_logging can run again."""
    global _logging_initialized, _log_file_path

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)

    _logging_initialized = False
    _log_file_path = None


def get_log_file_path() -> Optional[Path]:
    """Path of the active JSON log file, if file logging is enabled."""
    return _log_file_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the cmdmatch namespace.

    Args:
        name: Logger name (will be prefixed with 'cmdmatch.' if not already)

    Returns:
        Configured logger
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
