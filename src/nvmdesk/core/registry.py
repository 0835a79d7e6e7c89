"""Task registry: the authoritative map of in-flight installs."""

from __future__ import annotations

from datetime import datetime
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .identifiers import kind_of
from .models import Task, clamp_progress

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = frozenset({"progress", "status", "is_paused"})


class TaskRegistry:
    """
    In-memory map from task id to :class:`Task`.

    The registry is the single source of truth for "what is currently
    installing". It also remembers ids that were started but have not yet
    produced their first event ("expected" ids), so the first event for a
    started install can create its task while an event for an unknown or
    already finished id is recognised as stale.

    All operations are synchronous and run on the event loop thread, so no
    locking is used. Tasks are immutable models; every read hands out
    values that later mutations cannot change.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._expected: set[str] = set()
        self._listeners: list[Callable[[str, Task | None], None]] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def get(self, task_id: str) -> Task | None:
        """Get the current state of a task, or None if it is not active."""
        return self._tasks.get(task_id)

    def snapshot(self) -> Mapping[str, Task]:
        """
        Get a point-in-time view of all active tasks.

        Returns:
            Read-only mapping of task id to task, detached from the registry
        """
        return MappingProxyType(dict(self._tasks))

    def list_tasks(self) -> list[Task]:
        """List active tasks ordered by id."""
        return [self._tasks[task_id] for task_id in sorted(self._tasks)]

    def expect(self, task_id: str) -> None:
        """Record that an install for ``task_id`` has been requested."""
        if task_id not in self._tasks:
            self._expected.add(task_id)

    def is_expected(self, task_id: str) -> bool:
        """Whether ``task_id`` was started but has no task yet."""
        return task_id in self._expected

    def is_tracked(self, task_id: str) -> bool:
        """Whether ``task_id`` is active or expected."""
        return task_id in self._tasks or task_id in self._expected

    def upsert(self, task_id: str, **patch: Any) -> Task:
        """
        Merge a partial update into a task, creating it if absent.

        Only ``progress``, ``status`` and ``is_paused`` may be patched; a
        ``None`` value leaves the field unchanged.

        Args:
            task_id: Task id
            **patch: Fields to update

        Returns:
            The task after the update

        Raises:
            ValueError: If the patch names a field that cannot be updated
        """
        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch task fields: {sorted(unknown)}")

        changes = {key: value for key, value in patch.items() if value is not None}
        current = self._tasks.get(task_id)

        if current is None:
            task = Task(id=task_id, kind=kind_of(task_id), **changes)
            self._expected.discard(task_id)
            logger.debug(f"Task {task_id} registered")
        else:
            if "progress" in changes:
                progress = clamp_progress(changes["progress"])
                if progress < current.progress:
                    logger.debug(
                        f"Ignoring progress regression for {task_id}: "
                        f"{current.progress} -> {progress}"
                    )
                    progress = current.progress
                changes["progress"] = progress
            task = current.model_copy(update={**changes, "updated_at": datetime.now()})

        self._tasks[task_id] = task
        self._notify(task_id, task)
        return task

    def patch(self, task_id: str, **patch: Any) -> Task | None:
        """
        Merge a partial update into an existing task only.

        Returns:
            The updated task, or None if ``task_id`` is not active
        """
        if task_id not in self._tasks:
            return None
        return self.upsert(task_id, **patch)

    def complete(self, task_id: str) -> Task | None:
        """
        Force a task to 100% and remove it.

        Returns:
            The final task state, or None if ``task_id`` was not active
        """
        if task_id in self._tasks:
            self.upsert(task_id, progress=100)
        return self.remove(task_id)

    def remove(self, task_id: str) -> Task | None:
        """
        Remove a task. Removing an absent id is a no-op.

        Returns:
            The removed task, or None if it was not active
        """
        self._expected.discard(task_id)
        task = self._tasks.pop(task_id, None)
        if task is not None:
            logger.debug(f"Task {task_id} removed")
            self._notify(task_id, None)
        return task

    def clear(self) -> None:
        """Remove every task and expectation."""
        for task_id in list(self._tasks):
            self.remove(task_id)
        self._expected.clear()

    def add_listener(self, listener: Callable[[str, Task | None], None]) -> None:
        """
        Register a change listener.

        The listener is called with ``(task_id, task)`` after every change,
        ``task`` being None once the task is removed.
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[str, Task | None], None]) -> None:
        """Unregister a change listener."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, task_id: str, task: Task | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(task_id, task)
            except Exception as e:
                logger.error(f"Error in registry listener for task {task_id}: {e}")
