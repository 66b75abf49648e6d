"""SQLModel schema for active tasks, archived tasks and task data."""

from typing import Any, Optional

from sqlalchemy import Index
from sqlmodel import JSON, Column, Field, SQLModel


class WorkerTaskData(SQLModel, table=True):
    """Payload blob referenced by a task. Written once, never updated."""

    __tablename__ = "worker_taskdata"

    id: Optional[int] = Field(default=None, primary_key=True)
    data: Any = Field(default=None, sa_column=Column(JSON))


class WorkerActiveTask(SQLModel, table=True):
    """Queued task that has not reached a terminal state."""

    __tablename__ = "worker_activetask"
    __table_args__ = (
        Index("ix_worker_activetask_lease_owner_priority_id", "lease_owner", "priority", "id"),
        # Archived ids must never be handed out again.
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    task_class: str = Field(index=True)
    data_id: Optional[int] = Field(default=None, unique=True)

    lease_owner: Optional[str] = Field(default=None, index=True)
    lease_expires: Optional[int] = Field(default=None, index=True)

    priority: int = Field(default=0)
    failure_count: int = Field(default=0)
    failure_time: Optional[int] = Field(default=None, index=True)

    object_phid: Optional[str] = Field(default=None, index=True)


class WorkerArchiveTask(SQLModel, table=True):
    """Terminal snapshot of a task. Shares its id with the active row it replaced."""

    __tablename__ = "worker_archivetask"

    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})

    task_class: str = Field(index=True)
    data_id: Optional[int] = Field(default=None)

    lease_owner: Optional[str] = None
    lease_expires: Optional[int] = None

    priority: int = Field(default=0)
    failure_count: int = Field(default=0)
    object_phid: Optional[str] = Field(default=None, index=True)

    result: str = Field(index=True)
    duration: int = Field(default=0)
    date_created: Optional[int] = None
