"""Shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator
import os
from pathlib import Path

import pytest
import pytest_asyncio

from nvmdesk.config.manager import ConfigManager
from nvmdesk.core.coordinator import DownloadCoordinator
from nvmdesk.core.notifications import RecordingNotifier
from nvmdesk.core.registry import TaskRegistry

from .fakes import FakeGateway, FakeRefreshHooks


@pytest.fixture
def registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def hooks() -> FakeRefreshHooks:
    return FakeRefreshHooks()


@pytest_asyncio.fixture
async def coordinator(
    gateway: FakeGateway, notifier: RecordingNotifier, hooks: FakeRefreshHooks
) -> AsyncIterator[DownloadCoordinator]:
    """A started coordinator wired to fakes."""
    async with DownloadCoordinator(
        gateway, notifier=notifier, refresh_hooks=hooks
    ) as running:
        yield running


@pytest.fixture
def config_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    """Config manager in a temporary directory with no env overrides."""
    for key in list(os.environ):
        if key.startswith("NVMDESK_"):
            monkeypatch.delenv(key)
    return ConfigManager(config_dir=tmp_path / "config")
