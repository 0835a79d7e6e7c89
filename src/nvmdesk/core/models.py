"""Data models for install task coordination."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TaskKind(Enum):
    """Kind of install operation a task tracks."""

    RUNTIME = "runtime"  # Node.js runtime version download
    PACKAGE = "package"  # Global npm package install


def clamp_progress(value: float | int) -> int:
    """Clamp a progress value into the 0-100 range."""
    return max(0, min(100, int(value)))


class Task(BaseModel):
    """One in-flight install operation."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: TaskKind
    progress: int = 0
    status: str = ""
    is_paused: bool = False
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate task id is not blank."""
        if not v or not v.strip():
            raise ValueError("Task id must not be empty")
        return v

    @field_validator("progress", mode="before")
    @classmethod
    def validate_progress(cls, v: Any) -> int:
        """Keep progress within 0-100."""
        return clamp_progress(v)


class ProgressEvent(BaseModel):
    """
    Progress notification from the installer.

    Fields the installer leaves out are ``None`` and mean "unknown": they
    must not overwrite what the registry already knows. The installer keys
    events by ``version`` for historical reasons; ``id`` is accepted too.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "version", "task_id"))
    progress: int | None = None
    status: str | None = None
    finished: bool | None = None
    error: str | None = None
    is_paused: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("isPaused", "is_paused"),
        serialization_alias="isPaused",
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate event id is not blank and bring it into registry form."""
        # identifiers imports this module
        from .identifiers import normalize_id

        if not v or not v.strip():
            raise ValueError("Event id must not be empty")
        return normalize_id(v)

    @field_validator("progress", mode="before")
    @classmethod
    def validate_progress(cls, v: Any) -> int | None:
        """Clamp progress, keeping absence as None."""
        if v is None:
            return None
        return clamp_progress(float(v))

    @property
    def is_terminal(self) -> bool:
        """Whether this event ends the task's lifecycle."""
        return self.error is not None or bool(self.finished)


class RuntimeVersion(BaseModel):
    """Installed Node.js runtime version."""

    model_config = ConfigDict(populate_by_name=True)

    version: str
    path: str = ""
    is_active: bool = Field(
        default=False, validation_alias=AliasChoices("isActive", "is_active")
    )
    installed_date: str = Field(
        default="", validation_alias=AliasChoices("installedDate", "installed_date")
    )
    size: int | None = None


class GlobalPackage(BaseModel):
    """Globally installed npm package."""

    name: str
    version: str
    path: str = ""
