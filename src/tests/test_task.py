"""Tests for active task persistence and archiving."""

from dataclasses import FrozenInstanceError

import pytest

from leasequeue import (
    ActiveTask,
    ArchiveTask,
    IllegalOperationError,
    LeaseExpiredError,
    NotPersistedError,
    PermanentFailure,
    TaskResult,
)
from helpers import snapshot


class TestFirstSave:
    """Test inserting new tasks."""

    @pytest.mark.unit
    def test_failure_count_reset_on_insert(self, store, clock):
        task = ActiveTask(store, clock, "Reindex")
        task.failure_count = 3
        task.force_save_without_lease()

        assert isinstance(task.id, int)
        assert task.failure_count == 0
        assert store.load_active(task.id, clock).failure_count == 0

    @pytest.mark.unit
    def test_data_written_before_task(self, store, clock):
        task = ActiveTask(store, clock, "Reindex", {"repository": "r1"})
        task.force_save_without_lease()

        assert task.data_id is not None
        assert store.load_data(task.data_id) == {"repository": "r1"}
        assert store.load_active(task.id, clock).data_id == task.data_id

    @pytest.mark.unit
    def test_no_data_row_without_data(self, store, clock):
        task = ActiveTask(store, clock, "Reindex").force_save_without_lease()
        assert task.data_id is None

    @pytest.mark.unit
    def test_data_loaded_lazily(self, store, clock):
        task = ActiveTask(store, clock, "Reindex", [1, 2, 3]).force_save_without_lease()
        loaded = store.load_active(task.id, clock)

        assert loaded.data is None
        assert loaded.get_data() == [1, 2, 3]

    @pytest.mark.unit
    def test_ids_increase_and_are_never_reused(self, store, clock, scheduler):
        first = scheduler.schedule("Reindex")
        second = scheduler.schedule("Reindex")
        second.archive_task(TaskResult.SUCCESS, 0)

        third = scheduler.schedule("Reindex")

        assert first.id < second.id < third.id


class TestLeasedMutation:
    """Test that leased tasks can only be changed while the lease holds."""

    @pytest.mark.unit
    def test_save_within_lease(self, store, clock, leased_task):
        task = leased_task("Reindex", lease_seconds=60)
        clock.advance(59)
        task.priority = 9
        task.save()

        assert store.load_active(task.id, clock).priority == 9

    @pytest.mark.unit
    def test_expired_lease_rejects_every_mutation(self, store, clock, leased_task):
        task = leased_task("Reindex", lease_seconds=60)
        before = snapshot(store.load_active(task.id, clock))
        clock.advance(70)

        task.priority = 9
        with pytest.raises(LeaseExpiredError):
            task.save()
        with pytest.raises(LeaseExpiredError):
            task.set_lease_duration(600)
        with pytest.raises(LeaseExpiredError):
            task.archive_task(TaskResult.SUCCESS, 0)

        assert snapshot(store.load_active(task.id, clock)) == before
        assert store.load_archive(task.id) is None

    @pytest.mark.unit
    def test_lease_expiry_uses_local_elapsed_time(self, clock, leased_task):
        task = leased_task("Reindex", lease_seconds=60)
        reads = clock.server_reads

        clock.tick_local(60)
        with pytest.raises(LeaseExpiredError):
            task.save()

        assert clock.server_reads == reads

    @pytest.mark.unit
    def test_set_lease_duration_counts_from_current_server_time(self, store, clock, leased_task):
        task = leased_task("Reindex", lease_seconds=60)
        clock.advance(30)

        task.set_lease_duration(100)

        assert task.lease_expires == clock.now + 100
        assert store.load_active(task.id, clock).lease_expires == clock.now + 100

    @pytest.mark.unit
    def test_negative_lease_duration_releases_task(self, store, clock, leased_task):
        task = leased_task("Reindex", lease_seconds=60)
        task.set_lease_duration(-1)

        [reclaimed] = store.lease_tasks("worker-2", 60, clock)
        assert reclaimed.id == task.id
        assert reclaimed.lease_owner == "worker-2"

    @pytest.mark.unit
    def test_unleased_task_saves_freely(self, store, clock, scheduler):
        task = scheduler.schedule("Reindex")
        clock.advance(10_000)
        task.priority = 3
        task.save()

        assert store.load_active(task.id, clock).priority == 3


class TestArchive:
    """Test moving tasks to the archive."""

    @pytest.mark.unit
    def test_archive_moves_task(self, store, clock, leased_task):
        task = leased_task("Reindex", {"k": "v"}, priority=4)

        archive = task.archive_task(TaskResult.SUCCESS, 1500)

        assert isinstance(archive, ArchiveTask)
        assert store.load_active(task.id, clock) is None
        stored = store.load_archive(task.id)
        assert stored == archive
        assert stored.result == TaskResult.SUCCESS
        assert stored.duration == 1500
        assert stored.priority == 4
        assert stored.data_id == task.data_id
        assert stored.lease_owner == "worker-1"
        assert stored.date_created == clock.now

    @pytest.mark.unit
    def test_archived_task_is_immutable(self, leased_task):
        error = PermanentFailure("bad input")
        archive = leased_task("Reindex").archive_task(TaskResult.FAILURE, 0, execution_exception=error)

        assert archive.execution_exception is error
        with pytest.raises(FrozenInstanceError):
            archive.result = TaskResult.SUCCESS

    @pytest.mark.unit
    def test_archive_requires_saved_task(self, store, clock):
        task = ActiveTask(store, clock, "Reindex")
        with pytest.raises(NotPersistedError):
            task.archive_task(TaskResult.FAILURE, 0)

    @pytest.mark.unit
    def test_delete_is_not_allowed(self, store, clock, scheduler):
        task = scheduler.schedule("Reindex")
        with pytest.raises(IllegalOperationError):
            task.delete()
        assert store.load_active(task.id, clock) is not None
