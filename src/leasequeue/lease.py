"""Lease guard for active tasks."""

from typing import Optional

from .exceptions import LeaseExpiredError


def lease_is_expired(lease_owner: Optional[str], lease_expires: Optional[int], now: float) -> bool:
    """Check whether a held lease has run out at the given server time."""
    if not lease_owner:
        return False
    return lease_expires is None or now >= lease_expires


def check_lease(task, now: float) -> None:
    """
    Reject mutation of a task whose lease has expired.

    Unleased tasks always pass. Has no side effects.

    Raises:
        LeaseExpiredError: if the task is leased and `now` is at or past its expiry
    """
    if lease_is_expired(task.lease_owner, task.lease_expires, now):
        raise LeaseExpiredError(
            f"Trying to update Task {task.id} ({task.task_class}) after lease expiration!"
        )
