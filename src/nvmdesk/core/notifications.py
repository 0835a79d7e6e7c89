"""User-visible notification surfaces."""

from __future__ import annotations

from collections import deque
from datetime import datetime
from enum import Enum
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from rich.console import Console

if TYPE_CHECKING:
    from .identifiers import TaskIdentity

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    """Notification severity."""

    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    """A single user-visible notification."""

    level: NotificationLevel
    message: str
    task_id: str | None = None
    task_kind: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


def success_message(identity: TaskIdentity) -> str:
    """Build the success text for a completed install."""
    if identity.name:
        return f"Installed {identity.display_name} {identity.version}"
    return f"Installed Node.js {identity.version}"


def failure_message(identity: TaskIdentity, error: str) -> str:
    """Build the failure text for a failed install."""
    return f"Failed to install {identity.display_name}: {error}"


class LoggingNotifier:
    """Notifier that writes notifications to the application log."""

    def task_succeeded(self, identity: TaskIdentity) -> None:
        logger.info(success_message(identity))

    def task_failed(self, identity: TaskIdentity, error: str) -> None:
        logger.error(failure_message(identity, error))

    def command_failed(self, action: str, task_id: str, error: str) -> None:
        logger.error(f"Failed to {action} {task_id}: {error}")


class ConsoleNotifier:
    """Notifier that prints notifications with rich markup."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def task_succeeded(self, identity: TaskIdentity) -> None:
        self.console.print(f"[green]✓[/green] {success_message(identity)}")

    def task_failed(self, identity: TaskIdentity, error: str) -> None:
        self.console.print(f"[red]✗[/red] {failure_message(identity, error)}")

    def command_failed(self, action: str, task_id: str, error: str) -> None:
        self.console.print(f"[red]✗[/red] Failed to {action} {task_id}: {error}")


class RecordingNotifier:
    """
    Notifier that keeps a bounded history of notifications.

    Used to expose recent notifications to the presentation layer. Each
    notification is also forwarded to an optional downstream notifier.
    """

    def __init__(
        self,
        max_history: int = 100,
        forward_to: LoggingNotifier | ConsoleNotifier | None = None,
    ) -> None:
        """
        Initialize the recording notifier.

        Args:
            max_history: Number of notifications to keep
            forward_to: Notifier that also receives every notification
        """
        self._history: deque[Notification] = deque(maxlen=max_history)
        self._forward_to = forward_to

    @property
    def history(self) -> list[Notification]:
        """Recorded notifications, oldest first."""
        return list(self._history)

    def clear(self) -> None:
        """Drop all recorded notifications."""
        self._history.clear()

    def task_succeeded(self, identity: TaskIdentity) -> None:
        self._history.append(
            Notification(
                level=NotificationLevel.SUCCESS,
                message=success_message(identity),
                task_id=identity.task_id,
                task_kind=identity.kind.value,
            )
        )
        if self._forward_to:
            self._forward_to.task_succeeded(identity)

    def task_failed(self, identity: TaskIdentity, error: str) -> None:
        self._history.append(
            Notification(
                level=NotificationLevel.ERROR,
                message=failure_message(identity, error),
                task_id=identity.task_id,
                task_kind=identity.kind.value,
            )
        )
        if self._forward_to:
            self._forward_to.task_failed(identity, error)

    def command_failed(self, action: str, task_id: str, error: str) -> None:
        self._history.append(
            Notification(
                level=NotificationLevel.ERROR,
                message=f"Failed to {action} {task_id}: {error}",
                task_id=task_id,
            )
        )
        if self._forward_to:
            self._forward_to.command_failed(action, task_id, error)
