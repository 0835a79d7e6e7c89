"""
Main entry point for nvmdesk.

Provides the CLI for serving the install coordinator and for driving a
running instance through its REST API.
"""

import asyncio
import logging
from pathlib import Path
import sys
from typing import Any

import click
import httpx
from rich.console import Console
from rich.table import Table

from . import __version__
from .api.server import APIServer
from .config.defaults import registry_for_npm_mirror
from .config.manager import ConfigManager
from .config.settings import DeskConfig
from .core.bridge import ProgressEventBridge
from .core.coordinator import DownloadCoordinator
from .core.notifications import LoggingNotifier, RecordingNotifier
from .gateway.http_gateway import GatewayError, HttpInstallerGateway
from .gateway.inventory import InventoryCache
from .utils.logging import setup_logging

console = Console()
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config-dir",
    type=click.Path(exists=False, path_type=Path),
    help="Configuration directory path",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default=None,
    help="Logging level (overrides config)",
)
@click.pass_context
def cli(ctx: click.Context, config_dir: Path | None, log_level: str | None) -> None:
    """nvmdesk install coordinator CLI."""
    ctx.ensure_object(dict)

    config_manager = ConfigManager(config_dir=config_dir)
    config = config_manager.get_config()

    setup_logging(
        level=log_level or config.logging_level,
        log_file=config.log_file,
        structured_logging=config.structured_logging,
    )

    ctx.obj["config_manager"] = config_manager


def _api_url(config: DeskConfig, host: str | None, port: int | None, path: str) -> str:
    return f"http://{host or config.server_host}:{port or config.server_port}/api/v1{path}"


def _request(
    ctx: click.Context,
    method: str,
    path: str,
    host: str | None = None,
    port: int | None = None,
    json: dict[str, Any] | None = None,
) -> Any:
    """Call the served REST API, exiting with a message on failure."""
    config = ctx.obj["config_manager"].get_config()
    url = _api_url(config, host, port, path)

    try:
        with httpx.Client(timeout=5.0) as client:
            response = client.request(method, url, json=json)
    except httpx.ConnectError:
        console.print(f"[red]✗[/red] Cannot connect to server at {url}")
        console.print("[dim]Start it with 'nvmdesk serve'[/dim]")
        sys.exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if response.is_error:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        console.print(f"[red]✗[/red] Server error: HTTP {response.status_code} {detail}")
        sys.exit(1)

    return response.json()


def _print_command_result(result: dict[str, Any]) -> None:
    icon = "[green]✓[/green]" if result.get("accepted") else "[red]✗[/red]"
    console.print(f"{icon} {result.get('task_id')}: {result.get('message')}")
    if not result.get("accepted"):
        sys.exit(1)


async def _serve(config: DeskConfig, config_manager: ConfigManager, host: str, port: int) -> None:
    gateway = HttpInstallerGateway(
        config.gateway_url,
        timeout=config.gateway_timeout,
        npm_registry=registry_for_npm_mirror(config.npm_mirror),
    )
    inventory = InventoryCache(gateway)
    notifications = RecordingNotifier(
        max_history=config.notification_history, forward_to=LoggingNotifier()
    )
    coordinator = DownloadCoordinator(
        gateway,
        notifier=notifications,
        refresh_hooks=inventory,
        bridge=ProgressEventBridge(max_size=config.event_queue_size),
    )
    server = APIServer(
        coordinator,
        host=host,
        port=port,
        inventory=inventory,
        notifications=notifications,
        config_manager=config_manager,
    )

    async with gateway, coordinator:
        try:
            await gateway.set_arch(config.arch)
            await inventory.reload_all()
        except GatewayError as e:
            logger.warning(f"Installer backend not ready: {e}")
        await server.start()


@cli.command()
@click.option("--port", type=int, help="Server port (overrides config)")
@click.option("--host", help="Server host (overrides config)")
@click.pass_context
def serve(ctx: click.Context, port: int | None, host: str | None) -> None:
    """Run the coordinator and its REST API."""
    config_manager = ctx.obj["config_manager"]
    config = config_manager.get_config()
    server_host = host or config.server_host
    server_port = port or config.server_port

    console.print(f"[green]Serving on {server_host}:{server_port}[/green]")
    console.print(f"[dim]Installer backend: {config.gateway_url}[/dim]")
    console.print("[dim]Use Ctrl+C to stop the server[/dim]")

    try:
        asyncio.run(_serve(config, config_manager, server_host, server_port))
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")
    except Exception as e:
        console.print(f"[red]Error running server: {e}[/red]")
        logger.exception("Server failed")
        sys.exit(1)


@cli.command()
@click.option("--port", type=int, help="Server port to check")
@click.option("--host", help="Server host to check")
@click.pass_context
def status(ctx: click.Context, port: int | None, host: str | None) -> None:
    """Check server status via API."""
    health = _request(ctx, "GET", "/health", host, port)
    stats = _request(ctx, "GET", "/status", host, port)

    console.print(f"Status: {health.get('status', 'unknown')}")
    for component, ok in health.get("components", {}).items():
        status_icon = "[green]✓[/green]" if ok else "[red]✗[/red]"
        console.print(f"  {status_icon} {component}")

    console.print(
        f"Active tasks: {stats.get('active_tasks', 0)} "
        f"(paused: {stats.get('paused_tasks', 0)}), "
        f"pending events: {stats.get('pending_events', 0)}"
    )


@cli.command()
@click.option("--port", type=int, help="Server port")
@click.option("--host", help="Server host")
@click.pass_context
def tasks(ctx: click.Context, port: int | None, host: str | None) -> None:
    """List active installs."""
    snapshot = _request(ctx, "GET", "/tasks", host, port)

    if not snapshot["tasks"]:
        console.print("[dim]No active installs[/dim]")
        return

    table = Table(title="Active installs")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Progress", justify="right")
    table.add_column("Status")
    table.add_column("Paused")

    for task in snapshot["tasks"]:
        table.add_row(
            task["id"],
            task["kind"],
            f"{task['progress']}%",
            task["status"],
            "yes" if task["is_paused"] else "",
        )

    console.print(table)


@cli.command()
@click.argument("version")
@click.option("--port", type=int, help="Server port")
@click.option("--host", help="Server host")
@click.pass_context
def install(ctx: click.Context, version: str, port: int | None, host: str | None) -> None:
    """Install a Node.js runtime VERSION."""
    result = _request(
        ctx, "POST", "/tasks", host, port, json={"kind": "runtime", "version": version}
    )
    _print_command_result(result)


@cli.command("install-package")
@click.argument("name")
@click.argument("version", default="latest")
@click.option("--port", type=int, help="Server port")
@click.option("--host", help="Server host")
@click.pass_context
def install_package(
    ctx: click.Context, name: str, version: str, port: int | None, host: str | None
) -> None:
    """Install global package NAME at VERSION."""
    result = _request(
        ctx,
        "POST",
        "/tasks",
        host,
        port,
        json={"kind": "package", "name": name, "version": version},
    )
    _print_command_result(result)


def _task_command(action: str, help_text: str) -> click.Command:
    @click.argument("task_id")
    @click.option("--port", type=int, help="Server port")
    @click.option("--host", help="Server host")
    @click.pass_context
    def command(ctx: click.Context, task_id: str, port: int | None, host: str | None) -> None:
        result = _request(ctx, "POST", f"/tasks/{task_id}/{action}", host, port)
        _print_command_result(result)

    command.__doc__ = help_text
    return cli.command(action)(command)


pause = _task_command("pause", "Pause install TASK_ID.")
resume = _task_command("resume", "Resume install TASK_ID.")
cancel = _task_command("cancel", "Cancel install TASK_ID.")


@cli.command()
@click.pass_context
def mirrors(ctx: click.Context) -> None:
    """List mirror presets."""
    config_manager: ConfigManager = ctx.obj["config_manager"]
    current = config_manager.current_mirror()
    config = config_manager.get_config()

    table = Table(title="Mirror presets")
    table.add_column("", width=1)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Node.js URL")
    table.add_column("Description", style="dim")

    for preset in config_manager.list_mirror_presets():
        marker = "*" if current and current.id == preset.id else ""
        table.add_row(marker, preset.id, preset.name, preset.node_url, preset.description)

    console.print(table)
    if current is None:
        console.print(f"Custom mirror: {config.node_mirror}")


@cli.command("use-mirror")
@click.argument("preset_id", required=False)
@click.option("--node-url", help="Custom Node.js mirror URL")
@click.option("--npm-url", default="", help="Custom npm mirror URL")
@click.pass_context
def use_mirror(
    ctx: click.Context, preset_id: str | None, node_url: str | None, npm_url: str
) -> None:
    """Switch to mirror PRESET_ID, or to custom URLs."""
    config_manager: ConfigManager = ctx.obj["config_manager"]

    try:
        if preset_id:
            preset = config_manager.switch_mirror_preset(preset_id)
            console.print(f"[green]✓[/green] Using {preset.name} ({preset.node_url})")
        elif node_url:
            config_manager.set_custom_mirror(node_url, npm_url)
            console.print(f"[green]✓[/green] Using custom mirror {node_url}")
        else:
            raise click.UsageError("Give a PRESET_ID or --node-url")
    except KeyError as e:
        console.print(f"[red]✗[/red] {e.args[0]}")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid mirror: {e}")
        sys.exit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
