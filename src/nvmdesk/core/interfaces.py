"""Core interfaces and protocols for install coordination."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .identifiers import TaskIdentity
    from .models import TaskKind


class InstallerGateway(Protocol):
    """
    Protocol for the installer's control API.

    Every call only acknowledges receipt. The outcome of an install is
    reported later through the progress event bridge.
    """

    async def start(self, kind: TaskKind, name: str | None, version: str) -> bool:
        """
        Ask the installer to begin an install.

        Args:
            kind: Kind of install
            name: Package name (None for runtime installs)
            version: Version to install

        Returns:
            True if the installer accepted the request
        """
        ...

    async def pause(self, task_id: str) -> bool:
        """
        Pause an install.

        Args:
            task_id: ID of task to pause
        """
        ...

    async def resume(self, task_id: str) -> bool:
        """
        Resume a paused install.

        Args:
            task_id: ID of task to resume
        """
        ...

    async def cancel(self, task_id: str) -> bool:
        """
        Cancel an install.

        Args:
            task_id: ID of task to cancel
        """
        ...


class RefreshHooks(Protocol):
    """Protocol for reloading state that completed installs change."""

    async def reload_runtime_versions(self) -> None:
        """Reload the installed runtime version list."""
        ...

    async def reload_global_packages(self) -> None:
        """Reload the global package list."""
        ...


class Notifier(Protocol):
    """Protocol for user-visible notifications."""

    def task_succeeded(self, identity: TaskIdentity) -> None:
        """Report a completed install."""
        ...

    def task_failed(self, identity: TaskIdentity, error: str) -> None:
        """Report a failed install."""
        ...

    def command_failed(self, action: str, task_id: str, error: str) -> None:
        """Report a control command the installer did not accept."""
        ...
