"""SQLModel-backed storage for active tasks, archived tasks and task data."""

import logging
from typing import Any, Optional

from sqlalchemy import or_, update
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from .clock import Clock
from .db import WorkerActiveTask, WorkerArchiveTask, WorkerTaskData
from .exceptions import TaskNotFound
from .task import ActiveTask, ArchiveTask, TaskResult

logger = logging.getLogger(__name__)


class TaskStore:
    """Storage for task rows. Each call runs in its own session."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_all(self) -> None:
        SQLModel.metadata.create_all(self.engine)

    def insert_data(self, data: Any) -> int:
        with Session(self.engine) as session:
            row = WorkerTaskData(data=data)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.id

    def load_data(self, data_id: int) -> Any:
        with Session(self.engine) as session:
            row = session.get(WorkerTaskData, data_id)
            return row.data if row else None

    def insert_active(self, fields: dict[str, Any]) -> int:
        with Session(self.engine) as session:
            row = WorkerActiveTask(**fields)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.id

    def update_active(self, task_id: int, fields: dict[str, Any]) -> None:
        with Session(self.engine) as session:
            row = session.get(WorkerActiveTask, task_id)
            if row is None:
                raise TaskNotFound(f"Active task {task_id} does not exist")
            for name, value in fields.items():
                setattr(row, name, value)
            session.add(row)
            session.commit()

    def archive(self, archive: ArchiveTask) -> None:
        """Insert the archive row and remove the active row in one transaction."""
        with Session(self.engine) as session:
            row = session.get(WorkerActiveTask, archive.id)
            if row is None:
                raise TaskNotFound(f"Active task {archive.id} does not exist")
            session.add(
                WorkerArchiveTask(
                    id=archive.id,
                    task_class=archive.task_class,
                    data_id=archive.data_id,
                    lease_owner=archive.lease_owner,
                    lease_expires=archive.lease_expires,
                    priority=archive.priority,
                    failure_count=archive.failure_count,
                    object_phid=archive.object_phid,
                    result=archive.result.value,
                    duration=archive.duration,
                    date_created=archive.date_created,
                )
            )
            session.delete(row)
            session.commit()

    def load_active(self, task_id: int, clock: Clock) -> Optional[ActiveTask]:
        with Session(self.engine) as session:
            row = session.get(WorkerActiveTask, task_id)
            return self._to_active(row, clock) if row else None

    def load_archive(self, task_id: int) -> Optional[ArchiveTask]:
        with Session(self.engine) as session:
            row = session.get(WorkerArchiveTask, task_id)
            return self._to_archive(row) if row else None

    def list_active(
        self,
        clock: Clock,
        task_class: Optional[str] = None,
        object_phid: Optional[str] = None,
        limit: int = 100,
    ) -> list[ActiveTask]:
        with Session(self.engine) as session:
            statement = select(WorkerActiveTask)
            if task_class:
                statement = statement.where(WorkerActiveTask.task_class == task_class)
            if object_phid:
                statement = statement.where(WorkerActiveTask.object_phid == object_phid)
            statement = statement.order_by(WorkerActiveTask.priority.desc(), WorkerActiveTask.id).limit(limit)
            return [self._to_active(row, clock) for row in session.exec(statement).all()]

    def list_archive(
        self,
        result: Optional[TaskResult] = None,
        task_class: Optional[str] = None,
        limit: int = 100,
    ) -> list[ArchiveTask]:
        with Session(self.engine) as session:
            statement = select(WorkerArchiveTask)
            if result:
                statement = statement.where(WorkerArchiveTask.result == TaskResult(result).value)
            if task_class:
                statement = statement.where(WorkerArchiveTask.task_class == task_class)
            statement = statement.order_by(WorkerArchiveTask.id.desc()).limit(limit)
            return [self._to_archive(row) for row in session.exec(statement).all()]

    def lease_tasks(self, owner: str, lease_seconds: int, clock: Clock, limit: int = 1) -> list[ActiveTask]:
        """
        Claim up to `limit` tasks for `owner`.

        Unleased tasks are taken first (highest priority, then oldest), then
        tasks whose lease has expired (longest expired first). Each claim is a
        conditional update, so a row another process claimed in the meantime
        is skipped rather than stolen.

        Returns:
            Leased tasks, synced to the server time used for the claim
        """
        now = clock.server_time()
        leased: list[ActiveTask] = []

        with Session(self.engine) as session:
            phases = [
                select(WorkerActiveTask.id)
                .where(WorkerActiveTask.lease_owner.is_(None))
                .order_by(WorkerActiveTask.priority.desc(), WorkerActiveTask.id),
                select(WorkerActiveTask.id)
                .where(WorkerActiveTask.lease_owner.is_not(None))
                .where(WorkerActiveTask.lease_expires < now)
                .order_by(WorkerActiveTask.lease_expires, WorkerActiveTask.id),
            ]
            claimed: list[int] = []
            for phase in phases:
                if len(claimed) >= limit:
                    break
                candidates = session.exec(phase.limit(limit - len(claimed))).all()
                for task_id in candidates:
                    statement = (
                        update(WorkerActiveTask)
                        .where(WorkerActiveTask.id == task_id)
                        .where(
                            or_(
                                WorkerActiveTask.lease_owner.is_(None),
                                WorkerActiveTask.lease_expires < now,
                            )
                        )
                        .values(lease_owner=owner, lease_expires=now + lease_seconds)
                    )
                    if session.connection().execute(statement).rowcount == 1:
                        claimed.append(task_id)
                    else:
                        logger.debug(f"Task {task_id} was leased by another worker")
                session.commit()

            for task_id in claimed:
                row = session.get(WorkerActiveTask, task_id)
                if row is not None:
                    leased.append(self._to_active(row, clock).set_server_time(now))

        return leased

    def _to_active(self, row: WorkerActiveTask, clock: Clock) -> ActiveTask:
        return ActiveTask(
            self,
            clock,
            row.task_class,
            id=row.id,
            data_id=row.data_id,
            lease_owner=row.lease_owner,
            lease_expires=row.lease_expires,
            priority=row.priority,
            failure_count=row.failure_count,
            failure_time=row.failure_time,
            object_phid=row.object_phid,
        )

    @staticmethod
    def _to_archive(row: WorkerArchiveTask) -> ArchiveTask:
        return ArchiveTask(
            id=row.id,
            task_class=row.task_class,
            result=TaskResult(row.result),
            duration=row.duration,
            data_id=row.data_id,
            lease_owner=row.lease_owner,
            lease_expires=row.lease_expires,
            priority=row.priority,
            failure_count=row.failure_count,
            object_phid=row.object_phid,
            date_created=row.date_created,
        )
