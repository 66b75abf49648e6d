"""Authoritative time sources used for lease checks."""

import time
from typing import Protocol

from sqlalchemy import text
from sqlalchemy.engine import Engine

_SERVER_TIME_SQL = {
    "sqlite": "SELECT CAST(strftime('%s', 'now') AS INTEGER)",
    "postgresql": "SELECT CAST(EXTRACT(EPOCH FROM CURRENT_TIMESTAMP) AS BIGINT)",
    "mysql": "SELECT UNIX_TIMESTAMP()",
}


class Clock(Protocol):
    """
    Source of time for lease bookkeeping.

    `server_time()` is the authoritative epoch time shared by every worker
    process. `local_time()` is a process-local monotonic reading used to
    advance a synced server time without asking the authority again.
    """

    def server_time(self) -> int: ...

    def local_time(self) -> float: ...


class SystemClock:
    """Clock backed by this host's wall clock."""

    def server_time(self) -> int:
        return int(time.time())

    def local_time(self) -> float:
        return time.monotonic()


class DatabaseClock:
    """Clock that treats the database server as the time authority."""

    def __init__(self, engine: Engine):
        dialect = engine.dialect.name
        if dialect not in _SERVER_TIME_SQL:
            raise ValueError(f"No server time query for dialect '{dialect}'")
        self.engine = engine
        self._query = text(_SERVER_TIME_SQL[dialect])

    def server_time(self) -> int:
        with self.engine.connect() as conn:
            return int(conn.execute(self._query).scalar_one())

    def local_time(self) -> float:
        return time.monotonic()
