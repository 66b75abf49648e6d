"""Running one execution attempt of a leased task."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from .config import Config
from .exceptions import (
    IllegalOperationError,
    LeaseExpiredError,
    NotPersistedError,
    PermanentFailure,
    TaskNotFound,
    WorkerNotFound,
    YieldRequest,
)
from .payload import Worker, get_worker_class
from .retry import resolve_retry_delay, resolve_yield_delay
from .scheduler import Scheduler
from .task import ActiveTask, ArchiveTask, TaskResult

logger = logging.getLogger(__name__)

# Coordination and API-misuse errors are never turned into retries.
FATAL_ERRORS = (LeaseExpiredError, NotPersistedError, IllegalOperationError, TaskNotFound)


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    PERMANENT = "permanent"
    YIELD = "yield"
    TRANSIENT = "transient"


@dataclass
class Outcome:
    """How one attempt ended, before any state transition is applied."""

    kind: OutcomeKind
    duration: int = 0
    delay: Optional[int] = None
    error: Optional[BaseException] = None


class TaskExecutor:
    """
    Executes leased tasks and moves them to their next state.

    Success archives the task with `TaskResult.SUCCESS` and then schedules the
    tasks the worker queued. Permanent failure archives it with
    `TaskResult.FAILURE`. A yield or a transient failure keeps the task active
    and pushes its lease into the future, so no daemon picks it up before then.

    Example:
        executor = TaskExecutor(scheduler, config)
        for task in store.lease_tasks(owner, 7200, clock):
            executor.execute(task)
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[Config] = None,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.scheduler = scheduler
        self.default_wait_before_retry = config.default_wait_before_retry_seconds if config else 300
        self.minimum_yield = config.minimum_yield_seconds if config else 5
        self.timer = timer

    def execute(self, task: ActiveTask) -> Union[ActiveTask, ArchiveTask]:
        """
        Run `task` once.

        Returns:
            The archived task on success or permanent failure, otherwise the
            still-active task

        Raises:
            LeaseExpiredError: if the lease is lost before or during the attempt
        """
        # Without a valid lease we may not record any outcome at all.
        task.check_lease()

        worker, outcome = self._attempt(task)
        result = self._apply(task, worker, outcome)

        # Not covered by failure handling: an error here must not fail (and
        # later rerun) a task that already succeeded.
        if outcome.kind is OutcomeKind.SUCCESS:
            for task_class, data in worker.get_queued_tasks():
                self.scheduler.schedule(task_class, data, priority=task.priority)

        return result

    def get_worker_instance(self, task: ActiveTask) -> Worker:
        try:
            worker_cls = get_worker_class(task.task_class)
        except WorkerNotFound as e:
            raise PermanentFailure(str(e)) from e
        return worker_cls(task.get_data())

    def _attempt(self, task: ActiveTask) -> tuple[Optional[Worker], Outcome]:
        worker = None
        t_start = None
        try:
            worker = self.get_worker_instance(task)

            maximum_failures = worker.get_maximum_retry_count()
            if maximum_failures is not None and task.failure_count > maximum_failures:
                raise PermanentFailure(
                    f"Task {task.id} has exceeded the maximum number of failures ({maximum_failures})."
                )

            lease = worker.get_required_lease_time()
            if lease is not None:
                task.set_lease_duration(lease)

            t_start = self.timer()
            worker.execute_task()
            return worker, Outcome(OutcomeKind.SUCCESS, duration=self._elapsed(t_start))
        except FATAL_ERRORS:
            raise
        except PermanentFailure as e:
            duration = self._elapsed(t_start) if t_start is not None else 0
            return worker, Outcome(OutcomeKind.PERMANENT, duration=duration, error=e)
        except YieldRequest as e:
            return worker, Outcome(OutcomeKind.YIELD, delay=e.duration, error=e)
        except Exception as e:
            return worker, Outcome(OutcomeKind.TRANSIENT, error=e)

    def _apply(
        self, task: ActiveTask, worker: Optional[Worker], outcome: Outcome
    ) -> Union[ActiveTask, ArchiveTask]:
        if outcome.kind is OutcomeKind.SUCCESS:
            archive = task.archive_task(TaskResult.SUCCESS, outcome.duration)
            logger.info(f"Task {task.id} ({task.task_class}) succeeded in {outcome.duration}us")
            return archive

        if outcome.kind is OutcomeKind.PERMANENT:
            archive = task.archive_task(TaskResult.FAILURE, outcome.duration, execution_exception=outcome.error)
            logger.error(f"Task {task.id} ({task.task_class}) failed permanently: {outcome.error}")
            return archive

        task.execution_exception = outcome.error

        if outcome.kind is OutcomeKind.YIELD:
            retry = resolve_yield_delay(outcome.delay, self.minimum_yield)
            task.set_lease_duration(retry)
            logger.info(f"Task {task.id} ({task.task_class}) yielded for {retry}s")
            return task

        task.failure_count += 1
        task.failure_time = int(task.current_server_time())
        retry = resolve_retry_delay(worker, task, self.default_wait_before_retry)
        task.set_lease_duration(retry)
        logger.warning(
            f"Task {task.id} ({task.task_class}) failed (attempt {task.failure_count}). "
            f"Retrying in {retry}s. Error: {outcome.error!r}"
        )
        return task

    def _elapsed(self, t_start: float) -> int:
        return int(round(1_000_000 * (self.timer() - t_start)))
