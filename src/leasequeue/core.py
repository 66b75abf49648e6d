"""Core leasequeue functionality: process-wide setup and task scheduling."""

from typing import Any, Optional

from sqlalchemy.engine import Engine

from .clock import Clock, DatabaseClock, SystemClock
from .config import Config
from .db import init_database
from .scheduler import Scheduler
from .store import TaskStore
from .task import ActiveTask, ArchiveTask, TaskResult

_config: Optional[Config] = None
_store: Optional[TaskStore] = None
_clock: Optional[Clock] = None


def make_clock(config: Config, engine: Engine) -> Clock:
    """Pick the authoritative clock the configuration asks for."""
    if config.use_database_clock:
        return DatabaseClock(engine)
    return SystemClock()


def init(config: Config, clock: Optional[Clock] = None) -> None:
    """Initialize leasequeue with configuration."""
    global _config, _store, _clock

    engine = init_database(config.database_url)
    _config = config
    _store = TaskStore(engine)
    _clock = clock or make_clock(config, engine)


def _require_init() -> tuple[Config, TaskStore, Clock]:
    if _config is None or _store is None or _clock is None:
        raise RuntimeError("leasequeue not initialized. Call leasequeue.init(config) first.")
    return _config, _store, _clock


def get_store() -> TaskStore:
    return _require_init()[1]


def schedule_task(
    task_class: str,
    data: Any = None,
    *,
    priority: Optional[int] = None,
    object_phid: Optional[str] = None,
) -> ActiveTask:
    """
    Submit a task to the queue.

    Args:
        task_class: Name the worker was registered under
        data: Payload passed to the worker
        priority: Task priority (higher = leased first)
        object_phid: Identifier of the object the task operates on

    Returns:
        The new unleased task

    Example:
        task = schedule_task("send_email", {"to": "user@example.com"}, priority=10)
    """
    config, store, clock = _require_init()
    scheduler = Scheduler(store, clock, default_priority=config.default_priority)
    return scheduler.schedule(task_class, data, priority=priority, object_phid=object_phid)


def get_task(task_id: int) -> Optional[ActiveTask]:
    """Get an active task by ID."""
    _, store, clock = _require_init()
    return store.load_active(task_id, clock)


def get_archived_task(task_id: int) -> Optional[ArchiveTask]:
    """Get an archived task by ID."""
    return get_store().load_archive(task_id)


def list_tasks(
    task_class: Optional[str] = None,
    object_phid: Optional[str] = None,
    limit: int = 100,
) -> list[ActiveTask]:
    """
    List active tasks with optional filtering.

    Args:
        task_class: Filter by worker name
        object_phid: Filter by the object the task operates on
        limit: Max results

    Returns:
        Active tasks, in leasing order
    """
    _, store, clock = _require_init()
    return store.list_active(clock, task_class=task_class, object_phid=object_phid, limit=limit)


def list_archived_tasks(
    result: Optional[TaskResult] = None,
    task_class: Optional[str] = None,
    limit: int = 100,
) -> list[ArchiveTask]:
    """List archived tasks, newest first."""
    return get_store().list_archive(result=result, task_class=task_class, limit=limit)


def is_leased(task: ActiveTask) -> bool:
    """Check if someone holds an unexpired lease on the task."""
    return bool(task.lease_owner) and task.current_server_time() < (task.lease_expires or 0)


def is_succeeded(task: ArchiveTask) -> bool:
    return task.result == TaskResult.SUCCESS


def is_failed(task: ArchiveTask) -> bool:
    """Check if the task failed permanently."""
    return task.result == TaskResult.FAILURE
