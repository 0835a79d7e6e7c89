"""Tests for the command line interface."""

from __future__ import annotations

from typing import Any

from click.testing import CliRunner
import pytest

from nvmdesk import main as cli_module
from nvmdesk.config.manager import ConfigManager


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: None)
    return CliRunner()


def invoke(runner: CliRunner, config_manager: ConfigManager, *args: str) -> Any:
    return runner.invoke(
        cli_module.cli, ["--config-dir", str(config_manager.config_dir), *args]
    )


class TestMirrorCommands:
    """Test local mirror configuration commands."""

    def test_mirrors_lists_presets(
        self, runner: CliRunner, config_manager: ConfigManager
    ) -> None:
        result = invoke(runner, config_manager, "mirrors")

        assert result.exit_code == 0
        for preset_id in ("official", "taobao", "huawei", "tsinghua"):
            assert preset_id in result.output

    def test_use_mirror_preset(
        self, runner: CliRunner, config_manager: ConfigManager
    ) -> None:
        result = invoke(runner, config_manager, "use-mirror", "huawei")

        assert result.exit_code == 0
        reloaded = ConfigManager(config_dir=config_manager.config_dir)
        assert reloaded.get_config().node_mirror == "https://repo.huaweicloud.com/nodejs/"

    def test_use_unknown_mirror(
        self, runner: CliRunner, config_manager: ConfigManager
    ) -> None:
        result = invoke(runner, config_manager, "use-mirror", "nowhere")
        assert result.exit_code == 1
        assert "Unknown mirror preset" in result.output

    def test_use_custom_mirror(
        self, runner: CliRunner, config_manager: ConfigManager
    ) -> None:
        result = invoke(
            runner, config_manager, "use-mirror", "--node-url", "https://mirror.example.com/node/"
        )

        assert result.exit_code == 0
        reloaded = ConfigManager(config_dir=config_manager.config_dir)
        assert reloaded.current_mirror() is None

    def test_use_mirror_requires_target(
        self, runner: CliRunner, config_manager: ConfigManager
    ) -> None:
        result = invoke(runner, config_manager, "use-mirror")
        assert result.exit_code == 2


class TestRemoteCommands:
    """Test commands that call the served API."""

    def test_install_posts_start_request(
        self,
        runner: CliRunner,
        config_manager: ConfigManager,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        calls: list[tuple[str, str, Any]] = []

        def fake_request(ctx: Any, method: str, path: str, host: Any = None,
                         port: Any = None, json: Any = None) -> dict[str, Any]:
            calls.append((method, path, json))
            return {"task_id": "v20.11.0", "accepted": True, "message": "Install started"}

        monkeypatch.setattr(cli_module, "_request", fake_request)

        result = invoke(runner, config_manager, "install", "20.11.0")

        assert result.exit_code == 0
        assert calls == [("POST", "/tasks", {"kind": "runtime", "version": "20.11.0"})]
        assert "Install started" in result.output

    def test_rejected_pause_exits_nonzero(
        self,
        runner: CliRunner,
        config_manager: ConfigManager,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            cli_module,
            "_request",
            lambda ctx, method, path, host=None, port=None, json=None: {
                "task_id": "lodash@4.17.21",
                "accepted": False,
                "message": "Pause failed",
            },
        )

        result = invoke(runner, config_manager, "pause", "lodash@4.17.21")

        assert result.exit_code == 1
        assert "Pause failed" in result.output

    def test_server_not_running(
        self, runner: CliRunner, config_manager: ConfigManager
    ) -> None:
        config_manager.update_config(
            config_manager.get_config().model_copy(update={"server_port": 1})
        )

        result = invoke(runner, config_manager, "tasks")

        assert result.exit_code == 1
        assert "Cannot connect" in result.output
