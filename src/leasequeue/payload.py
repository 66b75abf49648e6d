"""Worker payloads: the business logic a task runs, and their registry."""

import inspect
from typing import Any, Callable, Optional

from pydantic import BaseModel, create_model

from .exceptions import WorkerAlreadyRegistered, WorkerNotFound

_worker_registry: dict[str, type["Worker"]] = {}


class Worker:
    """
    Base class for task payloads.

    Subclasses implement `do_work()`. Raise `PermanentFailure` to give up on
    the task, `YieldRequest` to be retried later without counting a failure;
    any other exception is a transient failure and the task is retried.

    Example:
        @register_worker
        class SendMail(Worker):
            max_retries = 5

            def do_work(self) -> None:
                deliver(self.data["to"])
                self.queue_task("LogDelivery", {"to": self.data["to"]})
    """

    max_retries: Optional[int] = None
    """Failures tolerated before the task is failed permanently (None = no limit)."""

    required_lease_seconds: Optional[int] = None
    """Lease needed to finish one attempt (None = keep the lease the daemon took)."""

    params_model: Optional[type[BaseModel]] = None
    """Model validating task data when the task is scheduled."""

    def __init__(self, data: Any = None):
        self.data = data
        self._queued_tasks: list[tuple[str, Any]] = []

    def do_work(self) -> None:
        raise NotImplementedError

    def execute_task(self) -> None:
        self.do_work()

    def get_maximum_retry_count(self) -> Optional[int]:
        return self.max_retries

    def get_required_lease_time(self) -> Optional[int]:
        return self.required_lease_seconds

    def get_wait_before_retry(self, task) -> Optional[int]:
        """Seconds to wait before retrying `task` after a failure (None = default)."""
        return None

    def queue_task(self, task_class: str, data: Any = None) -> None:
        """Schedule a follow-up task once this one succeeds."""
        self._queued_tasks.append((task_class, data))

    def get_queued_tasks(self) -> list[tuple[str, Any]]:
        return list(self._queued_tasks)


def register_worker(cls: Optional[type[Worker]] = None, *, name: Optional[str] = None) -> Any:
    """
    Register a Worker subclass under its class name (or `name`).

    Example:
        @register_worker
        class Reindex(Worker): ...

        @register_worker(name="mail.send")
        class SendMail(Worker): ...
    """

    def decorator(worker_cls: type[Worker]) -> type[Worker]:
        task_class = name or worker_cls.__name__
        if task_class in _worker_registry:
            raise WorkerAlreadyRegistered(f"Worker '{task_class}' already registered")
        _worker_registry[task_class] = worker_cls
        return worker_cls

    if cls is None:
        return decorator
    return decorator(cls)


def task(
    func: Optional[Callable] = None,
    *,
    max_retries: Optional[int] = None,
    lease_seconds: Optional[int] = None,
    wait_before_retry: Optional[int] = None,
) -> Callable:
    """
    Register a plain function as a worker. Task data is passed as keyword arguments.

    Args:
        func: The function to register
        max_retries: Failures tolerated before permanent failure
        lease_seconds: Lease required to run the function once
        wait_before_retry: Seconds to wait after a transient failure

    Example:
        @task
        def send_email(to: str, subject: str) -> None:
            ...

        @task(max_retries=5, lease_seconds=600)
        def process_image(image_path: str) -> None:
            ...
    """

    def decorator(f: Callable) -> Callable:
        sig = inspect.signature(f)
        fields: dict[str, Any] = {}

        for param_name, param in sig.parameters.items():
            annotation = Any if param.annotation == inspect.Parameter.empty else param.annotation
            if param.default == inspect.Parameter.empty:
                fields[param_name] = (annotation, ...)
            else:
                fields[param_name] = (annotation, param.default)

        params = create_model(f"{f.__name__}Params", **fields)

        class FunctionWorker(Worker):
            params_model = params

            def do_work(self) -> None:
                f(**(self.data or {}))

            def get_wait_before_retry(self, task) -> Optional[int]:
                return wait_before_retry

        FunctionWorker.max_retries = max_retries
        FunctionWorker.required_lease_seconds = lease_seconds
        FunctionWorker.__name__ = FunctionWorker.__qualname__ = f"{f.__name__}Worker"

        register_worker(FunctionWorker, name=f.__name__)
        return f

    if func is None:
        return decorator
    return decorator(func)


def get_worker_class(task_class: str) -> type[Worker]:
    try:
        return _worker_registry[task_class]
    except KeyError:
        raise WorkerNotFound(f"No worker registered for task class '{task_class}'") from None


def get_registered_workers() -> dict[str, type[Worker]]:
    """Get all registered workers."""
    return _worker_registry.copy()
