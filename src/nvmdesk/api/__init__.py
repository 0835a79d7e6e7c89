"""REST API server module."""

from .schemas import CommandResponse, SnapshotResponse, StartTaskRequest, TaskResponse
from .server import APIServer

__all__ = [
    "APIServer",
    "CommandResponse",
    "SnapshotResponse",
    "StartTaskRequest",
    "TaskResponse",
]
