"""Utility modules."""

from .logging import (
    LogCapture,
    StructuredFormatter,
    TaskLoggerAdapter,
    get_task_logger,
    setup_logging,
)

__all__ = [
    "LogCapture",
    "StructuredFormatter",
    "TaskLoggerAdapter",
    "get_task_logger",
    "setup_logging",
]
