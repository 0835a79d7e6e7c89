"""HTTP client for the installer backend's command API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from ..core.identifiers import ensure_v_prefix
from ..core.models import GlobalPackage, RuntimeVersion, TaskKind

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Exception raised when the installer cannot be reached or refuses a command."""

    def __init__(self, command: str, message: str, status_code: int | None = None):
        self.command = command
        self.status_code = status_code
        super().__init__(f"{command}: {message}")


class HttpInstallerGateway:
    """
    Installer gateway speaking JSON over HTTP.

    Each backend command is a ``POST {base_url}/{command}`` with a JSON
    object of arguments; the reply body is the command's JSON result. A
    non-2xx reply carries the backend's error message as its body.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        npm_registry: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            base_url: Installer backend base URL
            timeout: Request timeout in seconds
            npm_registry: Registry passed along with package installs
            client: Optional preconfigured HTTP client
        """
        self.base_url = base_url.rstrip("/")
        self.npm_registry = npm_registry
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout
        )

        logger.info(f"HttpInstallerGateway targeting {self.base_url}")

    async def invoke(self, command: str, **arguments: Any) -> Any:
        """
        Invoke a backend command.

        Args:
            command: Backend command name
            **arguments: Command arguments

        Returns:
            Decoded JSON result

        Raises:
            GatewayError: If the request fails or the backend reports an error
        """
        payload = {key: value for key, value in arguments.items() if value is not None}
        try:
            response = await self._client.post(f"/{command}", json=payload)
        except httpx.HTTPError as e:
            raise GatewayError(command, f"installer unreachable: {e}") from e

        if response.is_error:
            message = response.text.strip() or response.reason_phrase
            raise GatewayError(command, message, status_code=response.status_code)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(command, f"invalid response: {e}") from e

    async def _acknowledge(self, command: str, **arguments: Any) -> bool:
        result = await self.invoke(command, **arguments)
        return bool(result)

    async def start(self, kind: TaskKind, name: str | None, version: str) -> bool:
        if kind is TaskKind.RUNTIME:
            return await self._acknowledge(
                "install_version", version=ensure_v_prefix(version)
            )
        return await self._acknowledge(
            "install_global_package",
            name=name,
            version=version,
            registry=self.npm_registry,
        )

    async def pause(self, task_id: str) -> bool:
        return await self._acknowledge("pause_download", version=task_id)

    async def resume(self, task_id: str) -> bool:
        return await self._acknowledge("resume_download", version=task_id)

    async def cancel(self, task_id: str) -> bool:
        return await self._acknowledge("cancel_download", version=task_id)

    async def set_arch(self, arch: str) -> bool:
        """Select 32 or 64 bit runtime downloads."""
        return await self._acknowledge("set_arch", arch=arch)

    async def get_installed_versions(self) -> list[RuntimeVersion]:
        """Fetch installed runtime versions."""
        result = await self.invoke("get_installed_versions") or []
        return [RuntimeVersion.model_validate(item) for item in result]

    async def get_active_version(self) -> str | None:
        """Fetch the active runtime version."""
        result = await self.invoke("get_active_version")
        return str(result) if result else None

    async def get_global_packages(self) -> list[GlobalPackage]:
        """Fetch globally installed packages."""
        result = await self.invoke("get_global_packages") or []
        return [GlobalPackage.model_validate(item) for item in result]

    async def close(self) -> None:
        """Close the underlying HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpInstallerGateway:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
