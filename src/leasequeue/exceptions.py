"""Custom exceptions for leasequeue."""


class LeaseQueueError(Exception):
    """Base exception for leasequeue."""


class LeaseExpiredError(LeaseQueueError):
    """A leased task was about to be mutated after its lease expired."""


class NotPersistedError(LeaseQueueError):
    """Operation requires a task that has been saved."""


class IllegalOperationError(LeaseQueueError):
    """Operation is not allowed on active tasks."""


class TaskNotFound(LeaseQueueError):
    """Task not found in database."""


class WorkerNotFound(LeaseQueueError):
    """No worker registered for a task class."""


class WorkerAlreadyRegistered(LeaseQueueError):
    """Worker already registered with that name."""


class TaskExecutionError(LeaseQueueError):
    """Error scheduling or running a task."""


class PermanentFailure(Exception):
    """Raised by a worker when the task can never succeed."""


class YieldRequest(Exception):
    """Raised by a worker to be retried later without counting as a failure."""

    def __init__(self, duration: int, message: str = ""):
        super().__init__(message or f"Task yielded for {duration}s")
        self.duration = duration
