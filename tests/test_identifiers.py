"""Tests for the task identifier scheme."""

import pytest

from nvmdesk.core.identifiers import (
    TaskIdentity,
    compare_versions,
    kind_of,
    make_id,
    major_version,
    normalize_id,
    parse_id,
)
from nvmdesk.core.models import TaskKind


class TestMakeId:
    """Test id construction."""

    def test_runtime_id_is_v_prefixed_version(self) -> None:
        assert make_id(TaskKind.RUNTIME, None, "20.11.0") == "v20.11.0"
        assert make_id(TaskKind.RUNTIME, None, "v20.11.0") == "v20.11.0"

    def test_runtime_ignores_name(self) -> None:
        assert make_id(TaskKind.RUNTIME, "node", "18.19.1") == "v18.19.1"

    def test_package_id_is_name_at_version(self) -> None:
        assert make_id(TaskKind.PACKAGE, "lodash", "4.17.21") == "lodash@4.17.21"

    def test_scoped_package(self) -> None:
        assert make_id(TaskKind.PACKAGE, "@types/node", "20.1.0") == "@types/node@20.1.0"

    @pytest.mark.parametrize(
        ("kind", "name", "version"),
        [
            (TaskKind.RUNTIME, None, ""),
            (TaskKind.RUNTIME, None, "20@1"),
            (TaskKind.PACKAGE, None, "1.0.0"),
            (TaskKind.PACKAGE, "  ", "1.0.0"),
        ],
    )
    def test_invalid_targets(self, kind: TaskKind, name: str | None, version: str) -> None:
        with pytest.raises(ValueError):
            make_id(kind, name, version)


class TestParseId:
    """Test id parsing."""

    def test_runtime(self) -> None:
        identity = parse_id("v20.11.0")
        assert identity == TaskIdentity(TaskKind.RUNTIME, None, "v20.11.0", "v20.11.0")
        assert identity.display_name == "v20.11.0"

    def test_package_display_name_is_package_name(self) -> None:
        identity = parse_id("lodash@4.17.21")
        assert identity.kind is TaskKind.PACKAGE
        assert identity.name == "lodash"
        assert identity.version == "4.17.21"
        assert identity.display_name == "lodash"

    def test_scoped_package_splits_on_last_separator(self) -> None:
        identity = parse_id("@types/node@20.1.0")
        assert identity.name == "@types/node"
        assert identity.version == "20.1.0"
        assert kind_of("@types/node@20.1.0") is TaskKind.PACKAGE

    @pytest.mark.parametrize(
        "task_id", ["v20.11.0", "lodash@4.17.21", "@scope/pkg@1.0.0-beta.1"]
    )
    def test_identity_reproduces_id(self, task_id: str) -> None:
        assert parse_id(task_id).task_id == task_id


class TestVersionOrdering:
    """Test version helpers."""

    def test_newest_first(self) -> None:
        assert compare_versions("v20.11.0", "v18.19.1") < 0
        assert compare_versions("18.9.0", "18.10.0") > 0
        assert compare_versions("v16.0", "16.0.0") == 0

    def test_major_version(self) -> None:
        assert major_version("v20.11.0") == 20
        assert major_version("latest") == 0


class TestNormalizeId:
    """Test bringing external ids into registry form."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("20.11.0", "v20.11.0"),
            ("v20.11.0", "v20.11.0"),
            (" 18.19.1 ", "v18.19.1"),
            ("lodash@4.17.21", "lodash@4.17.21"),
            ("@types/node@20.1.0", "@types/node@20.1.0"),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_id(raw) == expected

    def test_parsed_bare_runtime_keeps_registry_id(self) -> None:
        identity = parse_id("20.11.0")
        assert identity.task_id == "v20.11.0"
        assert identity.version == "v20.11.0"
