"""Control commands for install tasks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..utils.logging import get_task_logger
from .identifiers import kind_of, make_id, normalize_id
from .models import TaskKind

if TYPE_CHECKING:
    from .interfaces import InstallerGateway, Notifier
    from .registry import TaskRegistry

logger = logging.getLogger(__name__)


class TaskController:
    """
    Translates user actions into installer calls plus local updates.

    The installer only acknowledges commands, so the registry is updated
    optimistically: pause and resume flip ``is_paused`` at once, cancel
    drops the task at once. A failed command is reported through the
    notifier and never rolled back; the next real event is authoritative.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        gateway: InstallerGateway,
        notifier: Notifier,
    ) -> None:
        """
        Initialize the controller.

        Args:
            registry: Task registry
            gateway: Installer control API
            notifier: Surface for command failures
        """
        self.registry = registry
        self.gateway = gateway
        self.notifier = notifier

    async def start(
        self, kind: TaskKind, name: str | None, version: str
    ) -> str | None:
        """
        Start an install unless one for the same target is in flight.

        The task itself is created by the first progress event.

        Args:
            kind: Kind of install
            name: Package name (None for runtime installs)
            version: Version to install

        Returns:
            Task id if the installer accepted the request, None if the
            target is already installing or the request failed

        Raises:
            ValueError: If the target does not form a valid task id
        """
        task_id = make_id(kind, name, version)

        if self.registry.is_tracked(task_id):
            logger.warning(f"Task {task_id} is already installing")
            return None

        # Claim the id before awaiting so a concurrent start is a no-op
        self.registry.expect(task_id)
        try:
            accepted = await self.gateway.start(kind, name, version)
        except Exception as e:
            self._forget_if_unconfirmed(task_id)
            self._report("start", task_id, e)
            return None

        if not accepted:
            self._forget_if_unconfirmed(task_id)
            self._report("start", task_id, "installer rejected the request")
            return None

        logger.info(f"Install of {task_id} accepted by installer")
        return task_id

    async def install_runtime(self, version: str) -> str | None:
        """Start a Node.js runtime install."""
        return await self.start(TaskKind.RUNTIME, None, version)

    async def install_package(self, name: str, version: str) -> str | None:
        """Start a global package install."""
        return await self.start(TaskKind.PACKAGE, name, version)

    async def pause(self, task_id: str) -> bool:
        """
        Pause an install.

        The local task is marked paused first, then the installer is asked
        to pause; a refusal is reported but not rolled back.

        Args:
            task_id: ID of task to pause (a bare runtime version is accepted)

        Returns:
            True if the installer acknowledged the pause
        """
        task_id = normalize_id(task_id)
        self.registry.patch(task_id, is_paused=True)
        return await self._send("pause", task_id)

    async def resume(self, task_id: str) -> bool:
        """
        Resume a paused install.

        The local task is marked running first, then the installer is asked
        to resume; a refusal is reported but not rolled back.

        Args:
            task_id: ID of task to resume (a bare runtime version is accepted)

        Returns:
            True if the installer acknowledged the resume
        """
        task_id = normalize_id(task_id)
        self.registry.patch(task_id, is_paused=False)
        return await self._send("resume", task_id)

    async def cancel(self, task_id: str) -> bool:
        """
        Cancel an install.

        The task leaves the registry before the installer is asked to
        cancel, and is not restored if the installer refuses. The
        installer's own terminal event, if any, arrives as a stale event
        and is dropped.

        Args:
            task_id: ID of task to cancel (a bare runtime version is accepted)

        Returns:
            True if the installer acknowledged the cancel
        """
        task_id = normalize_id(task_id)
        self.registry.remove(task_id)
        return await self._send("cancel", task_id)

    async def _send(self, action: str, task_id: str) -> bool:
        command = getattr(self.gateway, action)
        try:
            accepted = bool(await command(task_id))
        except Exception as e:
            self._report(action, task_id, e)
            return False

        if not accepted:
            self._report(action, task_id, "installer rejected the request")
            return False

        logger.info(f"Task {task_id}: {action} acknowledged")
        return True

    def _forget_if_unconfirmed(self, task_id: str) -> None:
        # An event may have created the task while the start call was pending
        if self.registry.get(task_id) is None:
            self.registry.remove(task_id)

    def _report(self, action: str, task_id: str, error: Exception | str) -> None:
        get_task_logger(task_id, kind_of(task_id)).log_command_error(action, error)
        try:
            self.notifier.command_failed(action, task_id, str(error))
        except Exception as e:
            logger.error(f"Error in notifier: {e}")
