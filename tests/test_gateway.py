"""Tests for the HTTP installer gateway and inventory cache."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from nvmdesk.core.models import GlobalPackage, RuntimeVersion, TaskKind
from nvmdesk.gateway.http_gateway import GatewayError, HttpInstallerGateway
from nvmdesk.gateway.inventory import InventoryCache

from .fakes import FakeInventorySource


class Installer:
    """Mock installer backend recording requests."""

    def __init__(self, replies: dict[str, httpx.Response] | None = None) -> None:
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.replies = replies or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        command = request.url.path.lstrip("/")
        self.requests.append((command, json.loads(request.content or b"{}")))
        return self.replies.get(command, httpx.Response(200, json=True))


def make_gateway(installer: Installer, npm_registry: str | None = None) -> HttpInstallerGateway:
    client = httpx.AsyncClient(
        base_url="http://installer.test", transport=httpx.MockTransport(installer)
    )
    return HttpInstallerGateway(
        "http://installer.test", npm_registry=npm_registry, client=client
    )


class TestCommands:
    """Test control command mapping."""

    @pytest.mark.asyncio
    async def test_runtime_start(self) -> None:
        installer = Installer()
        gateway = make_gateway(installer)

        assert await gateway.start(TaskKind.RUNTIME, None, "20.11.0") is True
        assert installer.requests == [("install_version", {"version": "v20.11.0"})]

    @pytest.mark.asyncio
    async def test_package_start_passes_registry(self) -> None:
        installer = Installer()
        gateway = make_gateway(installer, npm_registry="https://registry.npmmirror.com")

        await gateway.start(TaskKind.PACKAGE, "lodash", "4.17.21")

        assert installer.requests == [
            (
                "install_global_package",
                {
                    "name": "lodash",
                    "version": "4.17.21",
                    "registry": "https://registry.npmmirror.com",
                },
            )
        ]

    @pytest.mark.asyncio
    async def test_package_start_without_registry_omits_it(self) -> None:
        installer = Installer()
        await make_gateway(installer).start(TaskKind.PACKAGE, "lodash", "4.17.21")
        assert "registry" not in installer.requests[0][1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("action", "command"),
        [
            ("pause", "pause_download"),
            ("resume", "resume_download"),
            ("cancel", "cancel_download"),
        ],
    )
    async def test_control_commands(self, action: str, command: str) -> None:
        installer = Installer()
        gateway = make_gateway(installer)

        assert await getattr(gateway, action)("lodash@4.17.21") is True
        assert installer.requests == [(command, {"version": "lodash@4.17.21"})]

    @pytest.mark.asyncio
    async def test_set_arch(self) -> None:
        installer = Installer()
        assert await make_gateway(installer).set_arch("32") is True
        assert installer.requests == [("set_arch", {"arch": "32"})]

    @pytest.mark.asyncio
    async def test_false_reply_is_not_accepted(self) -> None:
        installer = Installer({"pause_download": httpx.Response(200, json=False)})
        assert await make_gateway(installer).pause("v20.11.0") is False

    @pytest.mark.asyncio
    async def test_error_reply_raises(self) -> None:
        installer = Installer(
            {"cancel_download": httpx.Response(500, text="no such download")}
        )

        with pytest.raises(GatewayError) as exc_info:
            await make_gateway(installer).cancel("v20.11.0")

        assert exc_info.value.status_code == 500
        assert "no such download" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(
            base_url="http://installer.test", transport=httpx.MockTransport(refuse)
        )
        gateway = HttpInstallerGateway("http://installer.test", client=client)

        with pytest.raises(GatewayError) as exc_info:
            await gateway.start(TaskKind.RUNTIME, None, "20.11.0")
        assert exc_info.value.command == "install_version"


class TestInventory:
    """Test inventory queries and caching."""

    @pytest.mark.asyncio
    async def test_gateway_queries(self) -> None:
        installer = Installer(
            {
                "get_installed_versions": httpx.Response(
                    200,
                    json=[
                        {
                            "version": "v20.11.0",
                            "path": "/nvm/v20.11.0",
                            "isActive": True,
                            "installedDate": "2024-02-01",
                        }
                    ],
                ),
                "get_active_version": httpx.Response(200, json="v20.11.0"),
                "get_global_packages": httpx.Response(
                    200, json=[{"name": "pnpm", "version": "8.15.1"}]
                ),
            }
        )
        gateway = make_gateway(installer)

        [version] = await gateway.get_installed_versions()
        assert version.is_active is True
        assert version.installed_date == "2024-02-01"
        assert await gateway.get_active_version() == "v20.11.0"
        assert await gateway.get_global_packages() == [
            GlobalPackage(name="pnpm", version="8.15.1")
        ]

    @pytest.mark.asyncio
    async def test_cache_sorts_newest_first(self) -> None:
        source = FakeInventorySource(
            versions=[
                RuntimeVersion(version="v18.19.1"),
                RuntimeVersion(version="v20.11.0"),
                RuntimeVersion(version="v18.9.0"),
            ],
            active="v18.19.1",
            packages=[
                GlobalPackage(name="typescript", version="5.3.3"),
                GlobalPackage(name="pnpm", version="8.15.1"),
            ],
        )
        inventory = InventoryCache(source)

        await inventory.reload_all()

        assert [v.version for v in inventory.versions] == ["v20.11.0", "v18.19.1", "v18.9.0"]
        assert inventory.active_version == "v18.19.1"
        assert [p.name for p in inventory.packages] == ["pnpm", "typescript"]
        assert inventory.versions_loaded_at is not None
        assert inventory.packages_loaded_at is not None
