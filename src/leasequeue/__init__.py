"""LeaseQueue: lease-based task execution and retry engine."""

from .clock import Clock, DatabaseClock, SystemClock
from .config import Config
from .core import (
    get_archived_task,
    get_task,
    init,
    is_failed,
    is_leased,
    is_succeeded,
    list_archived_tasks,
    list_tasks,
    schedule_task,
)
from .daemon import TaskDaemon
from .exceptions import (
    IllegalOperationError,
    LeaseExpiredError,
    LeaseQueueError,
    NotPersistedError,
    PermanentFailure,
    TaskNotFound,
    YieldRequest,
)
from .executor import Outcome, OutcomeKind, TaskExecutor
from .payload import Worker, get_registered_workers, register_worker, task
from .scheduler import Scheduler
from .store import TaskStore
from .task import ActiveTask, ArchiveTask, TaskResult

__version__ = "0.1.0"
__all__ = [
    "Config",
    "init",
    "schedule_task",
    "get_task",
    "get_archived_task",
    "list_tasks",
    "list_archived_tasks",
    "is_leased",
    "is_succeeded",
    "is_failed",
    "Clock",
    "SystemClock",
    "DatabaseClock",
    "ActiveTask",
    "ArchiveTask",
    "TaskResult",
    "TaskStore",
    "Scheduler",
    "TaskExecutor",
    "Outcome",
    "OutcomeKind",
    "TaskDaemon",
    "Worker",
    "register_worker",
    "task",
    "get_registered_workers",
    "LeaseQueueError",
    "LeaseExpiredError",
    "NotPersistedError",
    "IllegalOperationError",
    "TaskNotFound",
    "PermanentFailure",
    "YieldRequest",
]
