"""LeaseQueue database module."""

from .migrations import init_database, make_engine
from .models import WorkerActiveTask, WorkerArchiveTask, WorkerTaskData

__all__ = [
    "WorkerActiveTask",
    "WorkerArchiveTask",
    "WorkerTaskData",
    "init_database",
    "make_engine",
]
