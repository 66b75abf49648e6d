"""Creating new tasks."""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from .clock import Clock
from .exceptions import TaskExecutionError, WorkerNotFound
from .payload import get_worker_class
from .store import TaskStore
from .task import ActiveTask

logger = logging.getLogger(__name__)


class Scheduler:
    """Enqueues new, unleased tasks."""

    def __init__(self, store: TaskStore, clock: Clock, default_priority: int = 0):
        self.store = store
        self.clock = clock
        self.default_priority = default_priority

    def schedule(
        self,
        task_class: str,
        data: Any = None,
        priority: Optional[int] = None,
        object_phid: Optional[str] = None,
    ) -> ActiveTask:
        """
        Queue a task.

        Args:
            task_class: Registered worker name
            data: JSON-serializable payload handed to the worker
            priority: Leasing priority (higher = first)
            object_phid: Identifier of the object the task works on

        Returns:
            The saved, unleased task
        """
        data = self._validate(task_class, data)

        task = ActiveTask(
            self.store,
            self.clock,
            task_class,
            data,
            priority=self.default_priority if priority is None else priority,
            object_phid=object_phid,
        )
        task.force_save_without_lease()

        logger.debug(f"Scheduled task {task.id} ({task_class}) with priority {task.priority}")
        return task

    @staticmethod
    def _validate(task_class: str, data: Any) -> Any:
        try:
            params_model = get_worker_class(task_class).params_model
        except WorkerNotFound:
            # Workers may live only in the daemon's process.
            return data

        if params_model is None:
            return data

        try:
            return params_model(**(data or {})).model_dump()
        except (ValidationError, TypeError) as e:
            raise TaskExecutionError(f"Invalid data for task '{task_class}': {e}") from e
