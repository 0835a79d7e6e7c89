"""Configuration management module."""

from .defaults import (
    MIRROR_PRESETS,
    get_default_config,
    get_mirror_preset,
    registry_for_npm_mirror,
)
from .manager import ConfigManager, ValidationResult
from .settings import DeskConfig, MirrorPreset

__all__ = [
    "MIRROR_PRESETS",
    "ConfigManager",
    "DeskConfig",
    "MirrorPreset",
    "ValidationResult",
    "get_default_config",
    "get_mirror_preset",
    "registry_for_npm_mirror",
]
