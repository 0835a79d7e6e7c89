"""Configuration settings models."""

from pathlib import Path
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator


def _validate_http_url(value: str, field_name: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field_name} must be an http(s) URL")
    return value


class MirrorPreset(BaseModel):
    """Download mirror preset for Node.js binaries and the npm registry."""

    id: str
    name: str
    node_url: str
    npm_url: str
    registry_url: str
    description: str = ""


class DeskConfig(BaseModel):
    """Application configuration."""

    # Installer backend
    gateway_url: str = "http://127.0.0.1:8765"
    gateway_timeout: float = 10.0

    # Local API server
    server_host: str = "127.0.0.1"
    server_port: int = 8766

    # Logging
    logging_level: str = "INFO"
    log_file: Path | None = None
    structured_logging: bool = False

    # Coordination
    event_queue_size: int = 0  # 0 means unbounded
    notification_history: int = 100

    # Mirrors
    node_mirror: str = "https://nodejs.org/dist/"
    npm_mirror: str = ""
    arch: str = "64"

    @field_validator("gateway_url")
    @classmethod
    def validate_gateway_url(cls, v: str) -> str:
        """Validate gateway URL format."""
        return _validate_http_url(v, "gateway_url")

    @field_validator("node_mirror")
    @classmethod
    def validate_node_mirror(cls, v: str) -> str:
        """Validate Node.js mirror URL format."""
        return _validate_http_url(v, "node_mirror")

    @field_validator("gateway_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("gateway_timeout must be positive")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number range."""
        if not 1 <= v <= 65535:
            raise ValueError("server_port must be between 1 and 65535")
        return v

    @field_validator("logging_level")
    @classmethod
    def validate_logging_level(cls, v: str) -> str:
        """Validate logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid logging level: {v}")
        return level

    @field_validator("event_queue_size", "notification_history")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate sizes are non-negative."""
        if v < 0:
            raise ValueError("Sizes must be non-negative")
        return v

    @field_validator("arch")
    @classmethod
    def validate_arch(cls, v: str) -> str:
        """Validate architecture selector."""
        if v not in ("32", "64"):
            raise ValueError("arch must be '32' or '64'")
        return v
