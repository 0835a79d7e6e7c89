"""Configuration file handling, environment overrides and mirror switching."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .defaults import MIRROR_PRESETS, get_default_config, get_mirror_preset
from .settings import DeskConfig, MirrorPreset

logger = logging.getLogger(__name__)

ENV_PREFIX = "NVMDESK_"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# NVMDESK_<suffix> -> (DeskConfig field, parser)
_ENV_MAPPINGS: dict[str, tuple[str, Any]] = {
    "GATEWAY_URL": ("gateway_url", str),
    "GATEWAY_TIMEOUT": ("gateway_timeout", float),
    "SERVER_HOST": ("server_host", str),
    "SERVER_PORT": ("server_port", int),
    "LOGGING_LEVEL": ("logging_level", str),
    "LOG_FILE": ("log_file", Path),
    "STRUCTURED_LOGGING": ("structured_logging", _parse_bool),
    "EVENT_QUEUE_SIZE": ("event_queue_size", int),
    "NODE_MIRROR": ("node_mirror", str),
    "NPM_MIRROR": ("npm_mirror", str),
    "ARCH": ("arch", str),
}


class ValidationResult:
    """Outcome of validating a configuration."""

    def __init__(
        self,
        is_valid: bool,
        config: DeskConfig | None = None,
        errors: list[str] | None = None,
    ) -> None:
        self.is_valid = is_valid
        self.config = config
        self.errors = errors or []


class ConfigManager:
    """
    Loads, validates and persists :class:`DeskConfig`.

    The configuration lives in ``config.json`` under the config directory
    (``~/.config/nvmdesk`` by default). ``NVMDESK_*`` environment variables
    override file values on load but are never written back.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        """
        Initialize configuration manager.

        Args:
            config_dir: Configuration directory, created if missing
        """
        self.config_dir = config_dir or Path.home() / ".config" / "nvmdesk"
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file = self.config_dir / "config.json"

        # File-backed values; _config adds the environment overrides
        self._stored: DeskConfig | None = None
        self._config: DeskConfig | None = None

        logger.debug(f"Using config directory {self.config_dir}")

    def _env_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for suffix, (field, parse) in _ENV_MAPPINGS.items():
            raw = os.environ.get(ENV_PREFIX + suffix)
            if raw is None:
                continue
            try:
                overrides[field] = parse(raw)
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring {ENV_PREFIX}{suffix}={raw!r}: {e}")
        return overrides

    def _read_file(self) -> dict[str, Any] | None:
        if not self.config_file.exists():
            return None
        try:
            data = json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Cannot read {self.config_file}: {e}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Ignoring {self.config_file}: expected a JSON object")
            return None
        return data

    def _write_file(self, config: DeskConfig) -> bool:
        try:
            self.config_file.write_text(
                json.dumps(config.model_dump(mode="json"), indent=2), encoding="utf-8"
            )
        except OSError as e:
            logger.error(f"Cannot write {self.config_file}: {e}")
            return False
        logger.debug(f"Wrote {self.config_file}")
        return True

    def _apply_overrides(self, stored: DeskConfig) -> DeskConfig:
        overrides = self._env_overrides()
        if not overrides:
            return stored
        try:
            return DeskConfig.model_validate({**stored.model_dump(), **overrides})
        except ValidationError as e:
            logger.error(f"Ignoring invalid {ENV_PREFIX}* overrides: {e}")
            return stored

    def _load_stored(self) -> DeskConfig:
        if self._stored is not None:
            return self._stored

        data = self._read_file()
        if data is None:
            stored = get_default_config()
        else:
            try:
                stored = DeskConfig.model_validate(data)
            except ValidationError as e:
                logger.error(f"Invalid configuration in {self.config_file}, using defaults: {e}")
                stored = get_default_config()

        if not self.config_file.exists():
            self._write_file(stored)
            logger.info("Created default configuration")

        self._stored = stored
        return stored

    def get_config(self) -> DeskConfig:
        """
        Get the current configuration, loading it on first use.

        A missing or unreadable file falls back to defaults, and a missing
        file is created. Environment overrides are applied on top of the
        stored values.

        Returns:
            Configuration object
        """
        if self._config is None:
            self._config = self._apply_overrides(self._load_stored())
        return self._config

    def validate_config(self, config: DeskConfig) -> ValidationResult:
        """
        Re-run validation on a configuration object.

        Objects built with ``model_construct`` or ``model_copy`` skip
        validation, so this catches bad values before they are saved.

        Returns:
            ValidationResult with the validated config or the error list
        """
        try:
            validated = DeskConfig.model_validate(config.model_dump())
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
            return ValidationResult(is_valid=False, errors=errors)
        return ValidationResult(is_valid=True, config=validated)

    def update_config(self, config: DeskConfig) -> None:
        """
        Validate, persist and adopt a new configuration.

        The config is written as given. Environment overrides are applied
        again on top of it for :meth:`get_config`.

        Raises:
            ValueError: If the configuration is invalid
            RuntimeError: If the configuration cannot be saved
        """
        result = self.validate_config(config)
        if not result.is_valid or result.config is None:
            raise ValueError(f"Invalid configuration: {result.errors}")

        if not self._write_file(result.config):
            raise RuntimeError("Failed to save configuration")
        self._stored = result.config
        self._config = self._apply_overrides(result.config)
        logger.info("Configuration updated")

    def reset_to_defaults(self) -> None:
        """Replace the stored configuration with defaults."""
        self._stored = get_default_config()
        self._write_file(self._stored)
        self._config = self._apply_overrides(self._stored)
        logger.info("Configuration reset to defaults")

    def _update_stored(self, **changes: Any) -> None:
        # Overrides stay out of the file
        self.update_config(self._load_stored().model_copy(update=changes))

    def list_mirror_presets(self) -> list[MirrorPreset]:
        """List available mirror presets."""
        return list(MIRROR_PRESETS)

    def current_mirror(self) -> MirrorPreset | None:
        """Get the preset matching the configured Node.js mirror, if any."""
        node_mirror = self.get_config().node_mirror
        return next((p for p in MIRROR_PRESETS if p.node_url == node_mirror), None)

    def switch_mirror_preset(self, preset_id: str) -> MirrorPreset:
        """
        Point both mirrors at a preset.

        Args:
            preset_id: Preset id

        Returns:
            The applied preset

        Raises:
            KeyError: If no preset has that id
        """
        preset = get_mirror_preset(preset_id)
        if preset is None:
            raise KeyError(f"Unknown mirror preset: {preset_id}")

        self._update_stored(node_mirror=preset.node_url, npm_mirror=preset.npm_url)
        logger.info(f"Switched to mirror preset {preset_id}")
        return preset

    def set_custom_mirror(self, node_url: str, npm_url: str) -> None:
        """
        Use custom mirror URLs.

        Raises:
            ValueError: If ``node_url`` is not an http(s) URL
        """
        self._update_stored(node_mirror=node_url, npm_mirror=npm_url)
        logger.info(f"Switched to custom mirror {node_url}")
