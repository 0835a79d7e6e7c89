"""
nvmdesk - Install coordination for a Node.js version manager desktop app

Tracks concurrent runtime downloads and global npm package installs run by
an external installer, reconciles their progress events into a task
registry and exposes pause, resume and cancel controls.
"""

__version__ = "0.1.0"

from .core.coordinator import DownloadCoordinator
from .core.interfaces import InstallerGateway, Notifier, RefreshHooks
from .core.models import ProgressEvent, Task, TaskKind
from .core.registry import TaskRegistry

__all__ = [
    "DownloadCoordinator",
    "InstallerGateway",
    "Notifier",
    "ProgressEvent",
    "RefreshHooks",
    "Task",
    "TaskKind",
    "TaskRegistry",
]
