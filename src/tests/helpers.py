"""Helpers shared by the unit tests."""

from leasequeue.task import ACTIVE_FIELDS


def snapshot(task) -> dict:
    """Persisted fields of an active task plus its id."""
    return {"id": task.id, **{name: getattr(task, name) for name in ACTIVE_FIELDS}}
