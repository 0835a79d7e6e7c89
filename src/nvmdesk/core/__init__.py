"""Core install coordination module."""

from .bridge import BridgeClosedError, BridgeError, ProgressEventBridge
from .controller import TaskController
from .coordinator import CoordinatorError, DownloadCoordinator
from .identifiers import TaskIdentity, make_id, parse_id
from .interfaces import InstallerGateway, Notifier, RefreshHooks
from .models import ProgressEvent, Task, TaskKind
from .reconciler import ReconciliationHandler
from .registry import TaskRegistry

__all__ = [
    "BridgeClosedError",
    "BridgeError",
    "CoordinatorError",
    "DownloadCoordinator",
    "InstallerGateway",
    "Notifier",
    "ProgressEvent",
    "ProgressEventBridge",
    "ReconciliationHandler",
    "RefreshHooks",
    "Task",
    "TaskController",
    "TaskIdentity",
    "TaskKind",
    "TaskRegistry",
    "make_id",
    "parse_id",
]
