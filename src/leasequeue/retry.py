"""Wait-before-retry resolution."""

import logging
from typing import Optional

from .payload import Worker

logger = logging.getLogger(__name__)


def resolve_retry_delay(worker: Optional[Worker], task, default_seconds: int) -> int:
    """
    Seconds to wait before retrying `task` after a transient failure.

    The worker's recommendation wins when it is positive; otherwise the
    system default applies. A non-positive default is raised to one second.
    """
    retry = worker.get_wait_before_retry(task) if worker is not None else None
    if retry is not None and retry <= 0:
        logger.warning(f"Ignoring non-positive retry delay {retry} for task {task.id}")
        retry = None
    if retry is None:
        retry = default_seconds
    return max(int(retry), 1)


def resolve_yield_delay(requested: Optional[int], minimum_seconds: int) -> int:
    """Seconds a yielding task is deferred, never less than `minimum_seconds`."""
    return max(int(requested or 0), minimum_seconds)
