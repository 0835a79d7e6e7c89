"""Cached view of installed runtimes and global packages."""

from __future__ import annotations

from datetime import datetime
import functools
import logging
from typing import TYPE_CHECKING, Protocol

from ..core.identifiers import compare_versions

if TYPE_CHECKING:
    from ..core.models import GlobalPackage, RuntimeVersion

logger = logging.getLogger(__name__)


class InventorySource(Protocol):
    """Protocol for whatever can list installed runtimes and packages."""

    async def get_installed_versions(self) -> list[RuntimeVersion]: ...

    async def get_active_version(self) -> str | None: ...

    async def get_global_packages(self) -> list[GlobalPackage]: ...


class InventoryCache:
    """
    Installed runtime and package lists, reloaded on demand.

    Implements the refresh hooks the reconciliation handler calls after an
    install completes.
    """

    def __init__(self, source: InventorySource) -> None:
        self.source = source
        self.versions: list[RuntimeVersion] = []
        self.active_version: str | None = None
        self.packages: list[GlobalPackage] = []
        self.versions_loaded_at: datetime | None = None
        self.packages_loaded_at: datetime | None = None

    async def reload_runtime_versions(self) -> None:
        """Reload installed versions and the active version."""
        versions = await self.source.get_installed_versions()
        active = await self.source.get_active_version()

        self.versions = sorted(
            versions,
            key=functools.cmp_to_key(lambda a, b: compare_versions(a.version, b.version)),
        )
        self.active_version = active
        self.versions_loaded_at = datetime.now()
        logger.info(f"Loaded {len(self.versions)} installed runtime versions")

    async def reload_global_packages(self) -> None:
        """Reload globally installed packages."""
        packages = await self.source.get_global_packages()

        self.packages = sorted(packages, key=lambda package: package.name)
        self.packages_loaded_at = datetime.now()
        logger.info(f"Loaded {len(self.packages)} global packages")

    async def reload_all(self) -> None:
        """Reload both lists."""
        await self.reload_runtime_versions()
        await self.reload_global_packages()
