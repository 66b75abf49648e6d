"""Active and archived task records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .clock import Clock
from .exceptions import IllegalOperationError, NotPersistedError
from .lease import check_lease

ACTIVE_FIELDS = (
    "task_class",
    "data_id",
    "lease_owner",
    "lease_expires",
    "priority",
    "failure_count",
    "failure_time",
    "object_phid",
)


class TaskResult(str, Enum):
    """Terminal outcome recorded on an archived task."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class ArchiveTask:
    """Immutable terminal record of a task. Kept for history only."""

    id: int
    task_class: str
    result: TaskResult
    duration: int
    """Microseconds spent in the final execution attempt."""

    data_id: Optional[int] = None
    lease_owner: Optional[str] = None
    lease_expires: Optional[int] = None
    priority: int = 0
    failure_count: int = 0
    object_phid: Optional[str] = None
    date_created: Optional[int] = None
    execution_exception: Optional[BaseException] = field(default=None, compare=False, repr=False)

class ActiveTask:
    """
    A queued unit of work, possibly leased by one worker process.

    Every mutation goes through `save()`, `set_lease_duration()` or
    `archive_task()`, all of which refuse to touch the row once a held lease
    has expired. Lease expiry is judged against the authoritative server time
    captured by `set_server_time()`, advanced by the local time elapsed since.

    Example:
        task = store.lease_tasks("host:123", lease_seconds=60, clock=clock)[0]
        task.set_lease_duration(600)
    """

    def __init__(
        self,
        store,
        clock: Clock,
        task_class: str,
        data: Any = None,
        *,
        id: Optional[int] = None,
        data_id: Optional[int] = None,
        lease_owner: Optional[str] = None,
        lease_expires: Optional[int] = None,
        priority: int = 0,
        failure_count: int = 0,
        failure_time: Optional[int] = None,
        object_phid: Optional[str] = None,
    ):
        self.store = store
        self.clock = clock
        self.id = id
        self.task_class = task_class
        self.data = data
        self.data_id = data_id
        self.lease_owner = lease_owner
        self.lease_expires = lease_expires
        self.priority = priority
        self.failure_count = failure_count
        self.failure_time = failure_time
        self.object_phid = object_phid

        self.execution_exception: Optional[BaseException] = None
        self._server_time: Optional[int] = None
        self._local_time: float = 0.0

    def __repr__(self) -> str:
        return (
            f"ActiveTask(id={self.id!r}, task_class={self.task_class!r}, "
            f"lease_owner={self.lease_owner!r}, lease_expires={self.lease_expires!r}, "
            f"failure_count={self.failure_count!r})"
        )

    def set_server_time(self, server_time: int) -> "ActiveTask":
        """Record an authoritative time reading taken now."""
        self._server_time = server_time
        self._local_time = self.clock.local_time()
        return self

    def sync_clock(self) -> "ActiveTask":
        return self.set_server_time(self.clock.server_time())

    def current_server_time(self) -> float:
        """Synced server time plus local time elapsed since the sync."""
        if self._server_time is None:
            self.sync_clock()
        return self._server_time + (self.clock.local_time() - self._local_time)

    def check_lease(self) -> None:
        if self.lease_owner:
            check_lease(self, self.current_server_time())

    def to_fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in ACTIVE_FIELDS}

    def get_data(self) -> Any:
        """Payload for the worker, loaded from storage on first use."""
        if self.data is None and self.data_id is not None:
            self.data = self.store.load_data(self.data_id)
        return self.data

    def set_lease_duration(self, lease_duration: int) -> "ActiveTask":
        """Move lease expiry to `lease_duration` seconds from now and save.

        Negative durations are accepted; they leave the task immediately
        eligible for leasing by someone else.
        """
        self.check_lease()
        self.lease_expires = int(self.current_server_time()) + int(lease_duration)
        return self.force_save_without_lease()

    def save(self) -> "ActiveTask":
        self.check_lease()
        return self.force_save_without_lease()

    def force_save_without_lease(self) -> "ActiveTask":
        """Persist current state without checking the lease."""
        if self.id is None:
            self.failure_count = 0
            # Payload first, so the task never points at missing data.
            if self.data is not None:
                self.data_id = self.store.insert_data(self.data)
            self.id = self.store.insert_active(self.to_fields())
        else:
            self.store.update_active(self.id, self.to_fields())
        return self

    def delete(self) -> None:
        raise IllegalOperationError(
            "Active tasks can not be deleted directly. Use archive_task() to move tasks to the archive."
        )

    def archive_task(
        self,
        result: TaskResult,
        duration: int,
        execution_exception: Optional[BaseException] = None,
    ) -> ArchiveTask:
        """Move this task to the archive. The active row is removed."""
        if self.id is None:
            raise NotPersistedError("Attempting to archive a task which hasn't been saved!")

        self.check_lease()

        archive = ArchiveTask(
            id=self.id,
            task_class=self.task_class,
            result=TaskResult(result),
            duration=duration,
            data_id=self.data_id,
            lease_owner=self.lease_owner,
            lease_expires=self.lease_expires,
            priority=self.priority,
            failure_count=self.failure_count,
            object_phid=self.object_phid,
            date_created=int(self.current_server_time()),
            execution_exception=execution_exception,
        )
        self.store.archive(archive)
        return archive
