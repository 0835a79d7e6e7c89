"""FastAPI server implementation."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from ..core.bridge import BridgeClosedError
from ..core.identifiers import make_id, normalize_id
from ..core.models import ProgressEvent
from .schemas import CommandResponse, SnapshotResponse, StartTaskRequest, TaskResponse

if TYPE_CHECKING:
    from ..config.manager import ConfigManager
    from ..core.coordinator import DownloadCoordinator
    from ..core.notifications import RecordingNotifier
    from ..gateway.inventory import InventoryCache

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


class APIServer:
    """
    REST API over a :class:`DownloadCoordinator`.

    The presentation layer reads task snapshots and issues commands here;
    the installer backend posts its progress events to ``/api/v1/events``.
    """

    def __init__(
        self,
        coordinator: DownloadCoordinator,
        host: str = "127.0.0.1",
        port: int = 8766,
        inventory: InventoryCache | None = None,
        notifications: RecordingNotifier | None = None,
        config_manager: ConfigManager | None = None,
    ) -> None:
        """
        Initialize API server with dependency injection.

        Args:
            coordinator: Download coordinator instance
            host: Server host address
            port: Server port number
            inventory: Installed versions and packages cache
            notifications: Notifier keeping recent notifications
            config_manager: Configuration manager instance
        """
        self.host = host
        self.port = port
        self.coordinator = coordinator
        self.inventory = inventory
        self.notifications = notifications
        self.config_manager = config_manager

        self.app = FastAPI(
            title="nvmdesk API",
            description="Install task coordination for the nvm desktop panel",
            version=API_VERSION,
        )

        self._server: uvicorn.Server | None = None

        self._setup_middleware()
        self._setup_routes()

        logger.info(f"APIServer initialized on {host}:{port}")

    def _setup_middleware(self) -> None:
        """Setup FastAPI middleware."""
        # The desktop webview calls in from its own origin
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_routes(self) -> None:
        """Setup API routes."""
        coordinator = self.coordinator

        @self.app.get("/")
        async def root() -> dict[str, str]:
            """Root endpoint."""
            return {"message": "nvmdesk API", "version": API_VERSION}

        @self.app.get("/api/v1/health")
        async def health_check() -> dict[str, Any]:
            """Health check endpoint."""
            return {
                "status": "healthy" if coordinator.running else "stopped",
                "components": {
                    "coordinator": coordinator.running,
                    "inventory": self.inventory is not None,
                    "config_manager": self.config_manager is not None,
                },
            }

        @self.app.get("/api/v1/status")
        async def get_status() -> dict[str, Any]:
            """Get coordinator statistics."""
            return coordinator.get_stats()

        @self.app.get("/api/v1/tasks", response_model=SnapshotResponse)
        async def list_tasks() -> SnapshotResponse:
            """List active install tasks."""
            tasks = [
                TaskResponse.from_task(task)
                for task in coordinator.registry.list_tasks()
            ]
            return SnapshotResponse(tasks=tasks, total=len(tasks))

        @self.app.post("/api/v1/tasks", response_model=CommandResponse)
        async def start_task(request: StartTaskRequest) -> CommandResponse:
            """Start an install."""
            try:
                task_id = make_id(request.kind, request.name, request.version)
            except ValueError as e:
                raise HTTPException(status_code=422, detail=str(e)) from e

            if coordinator.registry.is_tracked(task_id):
                return CommandResponse(
                    task_id=task_id, accepted=False, message="Already installing"
                )

            started = await coordinator.controller.start(
                request.kind, request.name, request.version
            )
            if started is None:
                return CommandResponse(
                    task_id=task_id, accepted=False, message="Installer did not accept the request"
                )
            return CommandResponse(task_id=task_id, accepted=True, message="Install started")

        @self.app.post("/api/v1/tasks/{task_id:path}/pause", response_model=CommandResponse)
        async def pause_task(task_id: str) -> CommandResponse:
            """Pause an install."""
            task_id = normalize_id(task_id)
            accepted = await coordinator.controller.pause(task_id)
            return CommandResponse(
                task_id=task_id,
                accepted=accepted,
                message="Paused" if accepted else "Pause failed",
            )

        @self.app.post("/api/v1/tasks/{task_id:path}/resume", response_model=CommandResponse)
        async def resume_task(task_id: str) -> CommandResponse:
            """Resume an install."""
            task_id = normalize_id(task_id)
            accepted = await coordinator.controller.resume(task_id)
            return CommandResponse(
                task_id=task_id,
                accepted=accepted,
                message="Resumed" if accepted else "Resume failed",
            )

        @self.app.post("/api/v1/tasks/{task_id:path}/cancel", response_model=CommandResponse)
        async def cancel_task(task_id: str) -> CommandResponse:
            """Cancel an install."""
            task_id = normalize_id(task_id)
            accepted = await coordinator.controller.cancel(task_id)
            return CommandResponse(
                task_id=task_id,
                accepted=accepted,
                message="Cancelled" if accepted else "Cancel failed",
            )

        @self.app.get("/api/v1/tasks/{task_id:path}", response_model=TaskResponse)
        async def get_task(task_id: str) -> TaskResponse:
            """Get a specific active task."""
            task = coordinator.registry.get(normalize_id(task_id))
            if task is None:
                raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
            return TaskResponse.from_task(task)

        @self.app.post("/api/v1/events", status_code=202)
        async def publish_event(event: ProgressEvent) -> dict[str, Any]:
            """Accept a progress event from the installer."""
            try:
                coordinator.publish(event)
            except BridgeClosedError as e:
                raise HTTPException(status_code=503, detail=str(e)) from e
            except asyncio.QueueFull as e:
                raise HTTPException(status_code=503, detail="Event queue is full") from e
            return {"accepted": True, "id": event.id}

        @self.app.get("/api/v1/inventory/versions")
        async def list_versions() -> dict[str, Any]:
            """List installed runtime versions."""
            inventory = self._require_inventory()
            return {
                "versions": [v.model_dump() for v in inventory.versions],
                "active_version": inventory.active_version,
                "loaded_at": inventory.versions_loaded_at,
            }

        @self.app.get("/api/v1/inventory/packages")
        async def list_packages() -> dict[str, Any]:
            """List global packages."""
            inventory = self._require_inventory()
            return {
                "packages": [p.model_dump() for p in inventory.packages],
                "loaded_at": inventory.packages_loaded_at,
            }

        @self.app.post("/api/v1/inventory/refresh")
        async def refresh_inventory() -> dict[str, Any]:
            """Reload installed versions and packages."""
            inventory = self._require_inventory()
            try:
                await inventory.reload_all()
            except Exception as e:
                logger.error(f"Inventory refresh failed: {e}")
                raise HTTPException(status_code=502, detail=str(e)) from e
            return {"versions": len(inventory.versions), "packages": len(inventory.packages)}

        @self.app.get("/api/v1/notifications")
        async def list_notifications() -> dict[str, Any]:
            """List recent notifications."""
            if self.notifications is None:
                return {"notifications": []}
            return {
                "notifications": [
                    n.model_dump(mode="json") for n in self.notifications.history
                ]
            }

        @self.app.get("/api/v1/mirrors")
        async def list_mirrors() -> dict[str, Any]:
            """List mirror presets and the active mirror."""
            if self.config_manager is None:
                raise HTTPException(status_code=503, detail="Configuration not available")
            current = self.config_manager.current_mirror()
            config = self.config_manager.get_config()
            return {
                "presets": [p.model_dump() for p in self.config_manager.list_mirror_presets()],
                "current": current.id if current else None,
                "node_mirror": config.node_mirror,
                "npm_mirror": config.npm_mirror,
            }

    def _require_inventory(self) -> InventoryCache:
        if self.inventory is None:
            raise HTTPException(status_code=503, detail="Inventory not available")
        return self.inventory

    async def start(self) -> None:
        """Start the API server and serve until stopped."""
        logger.info(f"Starting API server on {self.host}:{self.port}")

        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            log_level="info",
            access_log=False,
        )
        self._server = uvicorn.Server(config)

        try:
            await self._server.serve()
        except Exception as e:
            logger.error(f"Failed to start API server: {e}")
            raise
