"""Download coordinator: owns the registry and the event listener."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from .bridge import ProgressEventBridge
from .controller import TaskController
from .notifications import LoggingNotifier
from .reconciler import ReconciliationHandler
from .registry import TaskRegistry

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from .interfaces import InstallerGateway, Notifier, RefreshHooks
    from .models import Task

logger = logging.getLogger(__name__)


class CoordinatorError(Exception):
    """Base exception for coordinator errors."""

    pass


class DownloadCoordinator:
    """
    Coordinates concurrent installs running in the external installer.

    Owns one :class:`TaskRegistry`, one :class:`ProgressEventBridge` and the
    single listener task that feeds bridge events to the
    :class:`ReconciliationHandler`. The listener is created by :meth:`start`
    and torn down by :meth:`shutdown`; calling :meth:`start` again while
    running does not add a second listener.
    """

    def __init__(
        self,
        gateway: InstallerGateway,
        notifier: Notifier | None = None,
        refresh_hooks: RefreshHooks | None = None,
        bridge: ProgressEventBridge | None = None,
    ) -> None:
        """
        Initialize the coordinator with dependency injection.

        Args:
            gateway: Installer control API
            notifier: Notification surface (logs by default)
            refresh_hooks: Hooks reloading installed versions and packages
            bridge: Event bridge (a new unbounded one by default)
        """
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.registry = TaskRegistry()
        self.bridge = bridge or ProgressEventBridge()
        self.handler = ReconciliationHandler(
            self.registry, self.notifier, refresh_hooks
        )
        self.controller = TaskController(self.registry, gateway, self.notifier)

        self._listener: asyncio.Task[None] | None = None
        self._running = False

        logger.info("DownloadCoordinator initialized")

    @property
    def running(self) -> bool:
        """Whether the event listener is active."""
        return self._running

    async def start(self) -> None:
        """Subscribe to the event bridge."""
        if self._running:
            logger.warning("Coordinator already running")
            return

        if self.bridge.subscribed or self.bridge.closed:
            raise CoordinatorError("Event bridge cannot be subscribed again")

        self._listener = asyncio.create_task(self._listen())
        self._running = True
        # Let the listener claim the bridge before anyone publishes
        await asyncio.sleep(0)
        logger.info("Coordinator started")

    async def shutdown(self) -> None:
        """Drain pending events, stop the listener and wait for refreshes."""
        if not self._running:
            return

        logger.info("Shutting down coordinator")
        self._running = False
        self.bridge.close()

        if self._listener and not self._listener.done():
            try:
                await asyncio.wait_for(self._listener, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Event listener did not drain in time, cancelling")
                self._listener.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._listener

        await self.handler.flush()
        logger.info("Coordinator shutdown complete")

    async def __aenter__(self) -> DownloadCoordinator:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()

    async def _listen(self) -> None:
        """Apply bridge events until the bridge is closed."""
        logger.info("Event listener started")

        async for event in self.bridge.events():
            try:
                self.handler.handle(event)
            except Exception as e:
                logger.error(f"Error handling event for {event.id}: {e}")

        logger.info("Event listener stopped")

    def publish(self, event: Any) -> None:
        """Publish an event into the bridge."""
        self.bridge.publish(event)

    async def wait_idle(self) -> None:
        """Wait until every published event has been applied."""
        while self.bridge.pending:
            await asyncio.sleep(0)
        # One more turn so the last event taken off the queue is handled
        await asyncio.sleep(0)
        await self.handler.flush()

    def snapshot(self) -> Mapping[str, Task]:
        """Point-in-time view of active tasks."""
        return self.registry.snapshot()

    def get_stats(self) -> dict[str, Any]:
        """
        Get coordinator statistics.

        Returns:
            Dictionary with coordinator statistics
        """
        tasks = self.registry.list_tasks()
        return {
            "running": self._running,
            "active_tasks": len(tasks),
            "paused_tasks": sum(1 for task in tasks if task.is_paused),
            "pending_events": self.bridge.pending,
            "published_events": self.bridge.published,
            "events": self.handler.stats,
        }
