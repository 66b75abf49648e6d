"""Configuration for leasequeue."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """LeaseQueue configuration."""

    database_url: str
    """Database URL (SQLAlchemy format)."""

    default_lease_seconds: int = 7200
    """Lease granted when a daemon claims a task (2 hours)."""

    default_wait_before_retry_seconds: int = 300
    """Wait before retrying a failed task when the worker has no opinion (5 minutes)."""

    minimum_yield_seconds: int = 5
    """Shortest deferral a yielding worker can request."""

    default_priority: int = 0
    """Priority for newly scheduled tasks (higher = leased first)."""

    worker_id: Optional[str] = None
    """Lease owner prefix (auto-generated if not set)."""

    use_database_clock: bool = True
    """Read the authoritative time from the database instead of the local clock."""
