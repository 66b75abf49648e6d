"""Task daemon: leases tasks from the queue and executes them."""

import asyncio
import logging
import os
import uuid
from typing import Optional, Union

from .clock import Clock
from .config import Config
from .core import make_clock
from .db import init_database
from .exceptions import LeaseQueueError
from .executor import TaskExecutor
from .scheduler import Scheduler
from .store import TaskStore
from .task import ActiveTask, ArchiveTask

logger = logging.getLogger(__name__)


class TaskDaemon:
    """
    Polls for tasks, leases them and runs each through a TaskExecutor.

    Example:
        config = Config(database_url="postgresql+psycopg://...")
        daemon = TaskDaemon(config, concurrency=4)
        await daemon.run()
    """

    def __init__(
        self,
        config: Config,
        concurrency: int = 1,
        poll_interval_seconds: float = 1.0,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize daemon.

        Args:
            config: LeaseQueue configuration
            concurrency: Number of tasks to execute at once
            poll_interval_seconds: How long to sleep when the queue is empty (seconds)
            clock: Authoritative time source (defaults to the one the config selects)
        """
        self.config = config
        self.concurrency = concurrency
        self.poll_interval_seconds = poll_interval_seconds
        self.worker_id = config.worker_id or f"{os.getpid()}:{uuid.uuid4().hex[:12]}"

        engine = init_database(config.database_url)
        self.clock = clock or make_clock(config, engine)
        self.store = TaskStore(engine)
        self.executor = TaskExecutor(
            Scheduler(self.store, self.clock, default_priority=config.default_priority),
            config,
        )

        self._running_tasks: set[asyncio.Task] = set()
        self._shutdown: bool = False

    def lease_owner(self) -> str:
        return f"{self.worker_id}:{uuid.uuid4().hex[:8]}"

    async def run(self) -> None:
        """Run the daemon (blocks until shutdown)."""
        logger.info(f"Starting TaskDaemon {self.worker_id} with concurrency={self.concurrency}")

        try:
            while not self._shutdown:
                free = self.concurrency - len(self._running_tasks)
                tasks = self._lease(free) if free > 0 else []

                for task in tasks:
                    async_task = asyncio.create_task(self._execute_task(task))
                    self._running_tasks.add(async_task)
                    async_task.add_done_callback(self._running_tasks.discard)

                if not tasks:
                    await asyncio.sleep(self.poll_interval_seconds)
                else:
                    await asyncio.sleep(0)

        except KeyboardInterrupt:
            logger.info("Received interrupt, shutting down...")
        finally:
            await self.shutdown()

    def run_once(self) -> Optional[Union[ActiveTask, ArchiveTask]]:
        """Lease and execute a single task in the calling thread.

        Returns:
            What the executor returned, or None if no task was available
        """
        tasks = self._lease(1)
        if not tasks:
            return None
        return self._execute(tasks[0])

    def _lease(self, limit: int) -> list[ActiveTask]:
        try:
            return self.store.lease_tasks(
                self.lease_owner(),
                self.config.default_lease_seconds,
                self.clock,
                limit=limit,
            )
        except Exception as e:
            logger.error(f"Error leasing tasks: {e}")
            return []

    async def _execute_task(self, task: ActiveTask) -> None:
        """Execute a single task in a worker thread."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._execute, task)
        except LeaseQueueError as e:
            # The task belongs to whoever holds the lease now.
            logger.error(f"Task {task.id} ({task.task_class}) abandoned: {e}", exc_info=True)
        except Exception as e:
            logger.error(f"Unexpected error after executing task {task.id}: {e}", exc_info=True)

    def _execute(self, task: ActiveTask) -> Union[ActiveTask, ArchiveTask]:
        logger.info(f"Executing task {task.id} ({task.task_class})")
        return self.executor.execute(task)

    async def shutdown(self) -> None:
        """Graceful shutdown."""
        self._shutdown = True
        logger.info("Waiting for running tasks to complete...")

        if self._running_tasks:
            await asyncio.gather(*self._running_tasks, return_exceptions=True)

        logger.info("Daemon shutdown complete")
