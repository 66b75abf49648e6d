"""Tests for task storage and the lease claim."""

import pytest

from leasequeue import TaskNotFound, TaskResult


class TestLeaseTasks:
    """Test claiming tasks."""

    @pytest.mark.unit
    def test_highest_priority_first(self, store, clock, scheduler):
        low = scheduler.schedule("Reindex", priority=1)
        high = scheduler.schedule("Reindex", priority=10)
        mid = scheduler.schedule("Reindex", priority=5)

        leased = store.lease_tasks("worker-1", 60, clock, limit=3)

        assert [t.id for t in leased] == [high.id, mid.id, low.id]

    @pytest.mark.unit
    def test_oldest_first_within_priority(self, store, clock, scheduler):
        first = scheduler.schedule("Reindex")
        scheduler.schedule("Reindex")

        [leased] = store.lease_tasks("worker-1", 60, clock)

        assert leased.id == first.id

    @pytest.mark.unit
    def test_lease_fields_set_and_clock_synced(self, store, clock, scheduler):
        scheduler.schedule("Reindex")

        [leased] = store.lease_tasks("worker-1", 60, clock)

        assert leased.lease_owner == "worker-1"
        assert leased.lease_expires == clock.now + 60
        assert leased.current_server_time() == clock.now
        assert store.load_active(leased.id, clock).lease_owner == "worker-1"

    @pytest.mark.unit
    def test_held_lease_is_not_claimed_again(self, store, clock, scheduler):
        scheduler.schedule("Reindex")
        store.lease_tasks("worker-1", 60, clock)
        clock.advance(59)

        assert store.lease_tasks("worker-2", 60, clock) == []

    @pytest.mark.unit
    def test_expired_lease_is_reclaimed(self, store, clock, scheduler):
        task = scheduler.schedule("Reindex")
        store.lease_tasks("worker-1", 60, clock)
        clock.advance(61)

        [reclaimed] = store.lease_tasks("worker-2", 60, clock)

        assert reclaimed.id == task.id
        assert reclaimed.lease_owner == "worker-2"

    @pytest.mark.unit
    def test_unleased_before_expired(self, store, clock, scheduler):
        expired = scheduler.schedule("Reindex", priority=100)
        store.lease_tasks("worker-1", 60, clock)
        clock.advance(61)
        fresh = scheduler.schedule("Reindex", priority=0)

        leased = store.lease_tasks("worker-2", 60, clock, limit=2)

        assert [t.id for t in leased] == [fresh.id, expired.id]

    @pytest.mark.unit
    def test_empty_queue(self, store, clock):
        assert store.lease_tasks("worker-1", 60, clock) == []


class TestQueries:
    """Test loading and listing."""

    @pytest.mark.unit
    def test_update_missing_task(self, store):
        with pytest.raises(TaskNotFound):
            store.update_active(404, {"priority": 1})

    @pytest.mark.unit
    def test_list_active_filters(self, store, clock, scheduler):
        scheduler.schedule("Reindex", object_phid="PHID-REPO-1")
        scheduler.schedule("Reindex", object_phid="PHID-REPO-2")
        scheduler.schedule("SendMail", object_phid="PHID-REPO-1")

        assert len(store.list_active(clock, task_class="Reindex")) == 2
        assert len(store.list_active(clock, object_phid="PHID-REPO-1")) == 2
        assert len(store.list_active(clock, limit=1)) == 1

    @pytest.mark.unit
    def test_list_archive_by_result(self, store, scheduler):
        ok = scheduler.schedule("Reindex")
        bad = scheduler.schedule("Reindex")
        ok.archive_task(TaskResult.SUCCESS, 10)
        bad.archive_task(TaskResult.FAILURE, 0)

        assert [t.id for t in store.list_archive(result=TaskResult.FAILURE)] == [bad.id]
        assert [t.id for t in store.list_archive()] == [bad.id, ok.id]
