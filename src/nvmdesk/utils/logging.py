"""Logging setup and per-task log context."""

from __future__ import annotations

from datetime import datetime
import json
import logging
import logging.handlers
from pathlib import Path
import sys
import traceback
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from ..core.models import TaskKind

_CONTEXT_FIELDS = ("task_id", "task_kind", "progress", "status", "action", "error_type")

_PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(funcName)s:%(lineno)d] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


class StructuredFormatter(logging.Formatter):
    """Formats records as one JSON object per line, including task context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(
            {field: getattr(record, field) for field in _CONTEXT_FIELDS if hasattr(record, field)}
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(entry, default=str)


class TaskLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter carrying install task context."""

    def __init__(self, logger: logging.Logger, task_id: str, task_kind: TaskKind):
        self.task_id = task_id
        self.task_kind = task_kind
        super().__init__(logger, {"task_id": task_id, "task_kind": task_kind.value})

    def process(self, msg: str, kwargs: Any) -> tuple[str, Any]:
        """Prefix the message with the task id and attach context."""
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return f"[{self.task_id}] {msg}", kwargs

    def log_progress(self, progress: int, status: str = "") -> None:
        """Log task progress."""
        self.debug(
            f"Progress: {progress}% {status}".rstrip(),
            extra={"progress": progress, "status": status},
        )

    def log_command_error(self, action: str, error: Exception | str) -> None:
        """Log a control command failure."""
        error_type = type(error).__name__ if isinstance(error, Exception) else "rejected"
        self.error(
            f"{action} failed: {error}",
            extra={"action": action, "error_type": error_type},
        )


def get_task_logger(task_id: str, task_kind: TaskKind) -> TaskLoggerAdapter:
    """
    Get a logger adapter for an install task.

    Args:
        task_id: Task id
        task_kind: Kind of install

    Returns:
        Logger adapter with task context
    """
    return TaskLoggerAdapter(
        logging.getLogger(f"nvmdesk.tasks.{task_kind.value}"), task_id, task_kind
    )


def _rotating_handler(
    path: Path, level: int, formatter: logging.Formatter, max_bytes: int, backups: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    rich_console: bool = True,
    structured_logging: bool = False,
    max_log_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger.

    Console output goes to stderr, through rich unless disabled. With a
    ``log_file``, everything from DEBUG up is also written there and errors
    are copied to a sibling ``<name>_errors`` file; both rotate.

    Args:
        level: Console logging level name
        log_file: Optional log file path
        rich_console: Use rich for console output
        structured_logging: Write JSON lines to the log files
        max_log_size: Bytes before a log file rotates
        backup_count: Rotated files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_file else numeric_level)

    console: logging.Handler
    if rich_console:
        console = RichHandler(
            console=Console(stderr=True), rich_tracebacks=True, show_path=False
        )
        console.setFormatter(logging.Formatter("%(message)s"))
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt=_DATE_FORMAT))
    console.setLevel(numeric_level)
    root.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        formatter = (
            StructuredFormatter()
            if structured_logging
            else logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
        )
        errors_file = log_file.with_name(f"{log_file.stem}_errors{log_file.suffix}")
        root.addHandler(
            _rotating_handler(log_file, logging.DEBUG, formatter, max_log_size, backup_count)
        )
        root.addHandler(
            _rotating_handler(errors_file, logging.ERROR, formatter, max_log_size, backup_count)
        )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LogCapture:
    """Collects records from one logger while active; for tests."""

    def __init__(self, logger_name: str = "", level: int = logging.INFO):
        self.logger_name = logger_name
        self.level = level
        self.records: list[logging.LogRecord] = []
        self._handler: logging.Handler | None = None
        self._previous_level = logging.NOTSET

    def __enter__(self) -> LogCapture:
        self._handler = logging.Handler(self.level)
        self._handler.emit = self.records.append  # type: ignore[method-assign]

        target = logging.getLogger(self.logger_name)
        self._previous_level = target.level
        if target.getEffectiveLevel() > self.level:
            target.setLevel(self.level)
        target.addHandler(self._handler)
        return self

    def __exit__(self, *exc_info: object) -> None:
        target = logging.getLogger(self.logger_name)
        if self._handler:
            target.removeHandler(self._handler)
        target.setLevel(self._previous_level)

    def has_message_containing(self, text: str) -> bool:
        """Whether any captured message contains ``text``."""
        return any(text in record.getMessage() for record in self.records)
