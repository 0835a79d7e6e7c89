"""Task identifier scheme.

A task id correlates a control command, a progress event and a registry
entry. Runtime installs are keyed by the ``v``-prefixed version string
(``v20.11.0``); global package installs by ``name@version``
(``lodash@4.17.21``, ``@types/node@20.1.0``).
"""

from __future__ import annotations

from typing import NamedTuple

from .models import TaskKind

PACKAGE_SEPARATOR = "@"


class TaskIdentity(NamedTuple):
    """Parsed form of a task id."""

    kind: TaskKind
    name: str | None
    version: str
    task_id: str

    @property
    def display_name(self) -> str:
        """Name shown to the user: the package name, or the runtime version."""
        return self.name if self.kind is TaskKind.PACKAGE and self.name else self.version


def clean_version(version: str) -> str:
    """Strip a leading ``v`` from a version string."""
    return version[1:] if version.startswith("v") else version


def ensure_v_prefix(version: str) -> str:
    """Add a leading ``v`` to a version string if it has none."""
    return version if version.startswith("v") else f"v{version}"


def parse_version(version: str) -> list[int]:
    """
    Split a version string into numeric components.

    Non-numeric components count as 0, so ``v18.20.x`` parses as [18, 20, 0].
    """
    parts = []
    for part in clean_version(version).split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)
    return parts


def major_version(version: str) -> int:
    """Major component of a version string, 0 if it cannot be parsed."""
    return parse_version(version)[0]


def compare_versions(a: str, b: str) -> int:
    """
    Compare two versions for a newest-first sort.

    Returns:
        Negative if ``a`` is newer than ``b``, positive if older, 0 if equal
    """
    parts_a = parse_version(a)
    parts_b = parse_version(b)
    for i in range(max(len(parts_a), len(parts_b))):
        num_a = parts_a[i] if i < len(parts_a) else 0
        num_b = parts_b[i] if i < len(parts_b) else 0
        if num_a != num_b:
            return num_b - num_a
    return 0


def make_id(kind: TaskKind, name: str | None, version: str) -> str:
    """
    Build the task id for an install target.

    Args:
        kind: Kind of install
        name: Package name (ignored for runtime installs)
        version: Runtime or package version

    Returns:
        Task id string

    Raises:
        ValueError: If the target cannot produce an unambiguous id
    """
    version = version.strip()
    if not version:
        raise ValueError("version must not be empty")

    if kind is TaskKind.RUNTIME:
        if PACKAGE_SEPARATOR in version:
            raise ValueError(f"Runtime version cannot contain '@': {version}")
        return ensure_v_prefix(version)

    if not name or not name.strip():
        raise ValueError("package name must not be empty")
    return f"{name.strip()}{PACKAGE_SEPARATOR}{version}"


def kind_of(task_id: str) -> TaskKind:
    """Derive the task kind from an id."""
    # A leading '@' is a scope marker, not the separator
    return (
        TaskKind.PACKAGE
        if task_id.rfind(PACKAGE_SEPARATOR) > 0
        else TaskKind.RUNTIME
    )


def normalize_id(task_id: str) -> str:
    """
    Bring an id from the installer or a caller into registry form.

    Runtime ids gain their ``v`` prefix, so ``20.11.0`` and ``v20.11.0``
    name the same task. Package ids are returned unchanged.
    """
    task_id = task_id.strip()
    if kind_of(task_id) is TaskKind.RUNTIME:
        return ensure_v_prefix(task_id)
    return task_id


def parse_id(task_id: str) -> TaskIdentity:
    """
    Parse a task id back into its parts.

    Args:
        task_id: Id produced by :func:`make_id`, or a bare runtime version

    Returns:
        Parsed identity carrying the normalized id
    """
    task_id = normalize_id(task_id)
    separator_index = task_id.rfind(PACKAGE_SEPARATOR)
    if separator_index > 0:
        return TaskIdentity(
            kind=TaskKind.PACKAGE,
            name=task_id[:separator_index],
            version=task_id[separator_index + 1 :],
            task_id=task_id,
        )
    return TaskIdentity(kind=TaskKind.RUNTIME, name=None, version=task_id, task_id=task_id)
