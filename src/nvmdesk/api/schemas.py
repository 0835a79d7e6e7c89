"""API request and response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from ..core.identifiers import parse_id
from ..core.models import Task, TaskKind


class TaskResponse(BaseModel):
    """Response schema for task information."""

    id: str
    kind: TaskKind
    name: str | None
    version: str
    progress: int
    status: str
    is_paused: bool
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> TaskResponse:
        """Build a response from a registry task."""
        identity = parse_id(task.id)
        return cls(
            id=task.id,
            kind=task.kind,
            name=identity.name,
            version=identity.version,
            progress=task.progress,
            status=task.status,
            is_paused=task.is_paused,
            updated_at=task.updated_at,
        )


class SnapshotResponse(BaseModel):
    """Response schema for the active task list."""

    tasks: list[TaskResponse]
    total: int


class StartTaskRequest(BaseModel):
    """Request schema for starting an install."""

    kind: TaskKind
    version: str
    name: str | None = None


class CommandResponse(BaseModel):
    """Response schema for control commands."""

    task_id: str
    accepted: bool
    message: str
