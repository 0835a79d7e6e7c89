"""Reconciliation of installer progress events into the task registry."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..utils.logging import get_task_logger
from .identifiers import parse_id

if TYPE_CHECKING:
    from collections.abc import Callable

    from .interfaces import Notifier, RefreshHooks
    from .models import ProgressEvent
    from .registry import TaskRegistry

logger = logging.getLogger(__name__)


class ReconciliationHandler:
    """
    Applies progress events to the registry.

    This is the only component that interprets event semantics. Events are
    partial patches: a field the event does not carry keeps its previous
    value. Terminal events remove the task and trigger the downstream
    refresh and notification exactly once; events for ids the registry no
    longer tracks are dropped so a late event cannot revive a cancelled
    task.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        notifier: Notifier,
        refresh_hooks: RefreshHooks | None = None,
    ) -> None:
        """
        Initialize the handler.

        Args:
            registry: Registry to reconcile into
            notifier: Surface for success and failure notifications
            refresh_hooks: Hooks reloading installed versions and packages
        """
        self.registry = registry
        self.notifier = notifier
        self.refresh_hooks = refresh_hooks

        self._refreshes: set[asyncio.Task[None]] = set()
        self._stats = {"applied": 0, "completed": 0, "failed": 0, "stale": 0}

    @property
    def stats(self) -> dict[str, int]:
        """Counters of processed events by outcome."""
        return dict(self._stats)

    def handle(self, event: ProgressEvent) -> None:
        """
        Reconcile a single event.

        Args:
            event: Inbound progress event
        """
        task_id = event.id

        if not self.registry.is_tracked(task_id):
            self._stats["stale"] += 1
            logger.debug(f"Dropping stale event for {task_id}")
            return

        if event.error is not None:
            self._handle_error(event)
        elif event.finished:
            self._handle_finished(event)
        else:
            task = self.registry.upsert(
                task_id,
                progress=event.progress,
                status=event.status,
                is_paused=event.is_paused,
            )
            self._stats["applied"] += 1
            get_task_logger(task_id, task.kind).log_progress(task.progress, task.status)

    def _handle_error(self, event: ProgressEvent) -> None:
        identity = parse_id(event.id)
        task_logger = get_task_logger(event.id, identity.kind)

        self.registry.remove(event.id)
        self._stats["failed"] += 1
        task_logger.warning(f"Install failed: {event.error}")

        self._notify_safely(
            lambda: self.notifier.task_failed(identity, event.error or "")
        )

    def _handle_finished(self, event: ProgressEvent) -> None:
        identity = parse_id(event.id)
        task_logger = get_task_logger(event.id, identity.kind)

        self.registry.complete(event.id)
        self._stats["completed"] += 1
        task_logger.info("Install finished")

        self._schedule_refresh(event.id)
        self._notify_safely(lambda: self.notifier.task_succeeded(identity))

    def _notify_safely(self, notify: Callable[[], None]) -> None:
        try:
            notify()
        except Exception as e:
            logger.error(f"Error in notifier: {e}")

    def _schedule_refresh(self, task_id: str) -> None:
        if self.refresh_hooks is None:
            return

        refresh = asyncio.create_task(self._refresh(task_id))
        self._refreshes.add(refresh)
        refresh.add_done_callback(self._refreshes.discard)

    async def _refresh(self, task_id: str) -> None:
        """Reload both lists; a package install may target a just-switched runtime."""
        hooks = self.refresh_hooks
        if hooks is None:
            return

        try:
            await hooks.reload_runtime_versions()
        except Exception as e:
            logger.error(f"Failed to reload runtime versions after {task_id}: {e}")

        try:
            await hooks.reload_global_packages()
        except Exception as e:
            logger.error(f"Failed to reload global packages after {task_id}: {e}")

    async def flush(self) -> None:
        """Wait for every scheduled refresh to finish."""
        while self._refreshes:
            await asyncio.gather(*list(self._refreshes), return_exceptions=True)
