"""Tests for the task registry."""

import pytest

from nvmdesk.core.models import TaskKind
from nvmdesk.core.registry import TaskRegistry


class TestUpsert:
    """Test partial-patch merging."""

    def test_creates_task_with_defaults(self, registry: TaskRegistry) -> None:
        task = registry.upsert("v20.11.0", progress=10, status="downloading")

        assert task.kind is TaskKind.RUNTIME
        assert task.progress == 10
        assert task.status == "downloading"
        assert task.is_paused is False

    def test_none_preserves_previous_value(self, registry: TaskRegistry) -> None:
        registry.upsert("v20.11.0", progress=10, status="downloading", is_paused=True)
        task = registry.upsert("v20.11.0", progress=40, status=None, is_paused=None)

        assert task.progress == 40
        assert task.status == "downloading"
        assert task.is_paused is True

    def test_progress_is_clamped(self, registry: TaskRegistry) -> None:
        assert registry.upsert("a@1", progress=150).progress == 100
        assert registry.upsert("b@1", progress=-5).progress == 0

    def test_progress_never_regresses(self, registry: TaskRegistry) -> None:
        registry.upsert("v20.11.0", progress=60)
        assert registry.upsert("v20.11.0", progress=30).progress == 60

    def test_rejects_unknown_fields(self, registry: TaskRegistry) -> None:
        with pytest.raises(ValueError):
            registry.upsert("v20.11.0", kind="package")

    def test_creation_consumes_expectation(self, registry: TaskRegistry) -> None:
        registry.expect("v20.11.0")
        assert registry.is_expected("v20.11.0")

        registry.upsert("v20.11.0", progress=1)

        assert not registry.is_expected("v20.11.0")
        assert registry.is_tracked("v20.11.0")


class TestPatch:
    """Test updates of existing tasks only."""

    def test_absent_task_is_not_created(self, registry: TaskRegistry) -> None:
        assert registry.patch("v20.11.0", is_paused=True) is None
        assert "v20.11.0" not in registry

    def test_present_task_is_updated(self, registry: TaskRegistry) -> None:
        registry.upsert("v20.11.0", progress=10)
        assert registry.patch("v20.11.0", is_paused=True).is_paused is True


class TestRemoval:
    """Test complete, remove and clear."""

    def test_complete_forces_full_progress(self, registry: TaskRegistry) -> None:
        registry.upsert("lodash@4.17.21", progress=70)

        final = registry.complete("lodash@4.17.21")

        assert final is not None
        assert final.progress == 100
        assert "lodash@4.17.21" not in registry

    def test_remove_is_idempotent(self, registry: TaskRegistry) -> None:
        registry.upsert("v20.11.0", progress=10)
        assert registry.remove("v20.11.0") is not None
        assert registry.remove("v20.11.0") is None

    def test_remove_discards_expectation(self, registry: TaskRegistry) -> None:
        registry.expect("v20.11.0")
        registry.remove("v20.11.0")
        assert not registry.is_tracked("v20.11.0")

    def test_clear(self, registry: TaskRegistry) -> None:
        registry.upsert("v20.11.0", progress=10)
        registry.expect("v18.19.1")
        registry.clear()
        assert len(registry) == 0
        assert not registry.is_tracked("v18.19.1")


class TestSnapshot:
    """Test reads."""

    def test_snapshot_is_detached(self, registry: TaskRegistry) -> None:
        registry.upsert("v20.11.0", progress=10)
        snapshot = registry.snapshot()

        registry.upsert("v20.11.0", progress=50)
        registry.upsert("lodash@4.17.21", progress=5)

        assert snapshot["v20.11.0"].progress == 10
        assert "lodash@4.17.21" not in snapshot
        with pytest.raises(TypeError):
            snapshot["x"] = snapshot["v20.11.0"]  # type: ignore[index]

    def test_list_tasks_sorted_by_id(self, registry: TaskRegistry) -> None:
        registry.upsert("v20.11.0")
        registry.upsert("lodash@4.17.21")
        assert [t.id for t in registry.list_tasks()] == ["lodash@4.17.21", "v20.11.0"]


class TestListeners:
    """Test change listeners."""

    def test_listener_sees_changes_and_removal(self, registry: TaskRegistry) -> None:
        seen: list[tuple[str, int | None]] = []
        registry.add_listener(
            lambda task_id, task: seen.append((task_id, task.progress if task else None))
        )

        registry.upsert("v20.11.0", progress=10)
        registry.remove("v20.11.0")

        assert seen == [("v20.11.0", 10), ("v20.11.0", None)]

    def test_failing_listener_does_not_block_update(self, registry: TaskRegistry) -> None:
        def broken(task_id: str, task: object) -> None:
            raise RuntimeError("boom")

        registry.add_listener(broken)
        registry.upsert("v20.11.0", progress=10)
        registry.remove_listener(broken)

        assert registry.get("v20.11.0") is not None
