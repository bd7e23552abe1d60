"""Collaborator adapters the engine and handlers write through.

ExecutionStore, NotificationSink and DataSink are the narrow contracts the
engine and built-in handlers depend on. The SQL adapters open one session per
call and wrap every SQLAlchemy failure as PersistenceError; the in-memory
adapters back the CLI's default run mode and the unit tests.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from minizap.db.repository import Repository
from minizap.exceptions import PersistenceError
from minizap.types import (
    TERMINAL_STATUSES, ExecutionRecord, ExecutionStatus, NotificationRecord,
)

logger = logging.getLogger(__name__)


# ── Contracts ──


@runtime_checkable
class ExecutionStore(Protocol):
    async def create(
        self, workflow_id: str, status: ExecutionStatus, start_time: datetime, input: Any,
    ) -> str:
        ...

    async def update(self, execution_id: str, updates: dict[str, Any]) -> None:
        ...


@runtime_checkable
class NotificationSink(Protocol):
    async def create(self, notification: NotificationRecord) -> str:
        ...


@runtime_checkable
class DataSink(Protocol):
    """Generic per-user records grouped by table name."""

    async def insert(self, user_id: str, table: str, data: dict) -> dict:
        ...

    async def update(self, user_id: str, table: str, conditions: dict, data: dict) -> list[dict]:
        ...

    async def find(self, user_id: str, table: str, conditions: Optional[dict] = None) -> list[dict]:
        ...

    async def delete(self, user_id: str, table: str, conditions: dict) -> int:
        ...


def matches(record: dict, conditions: Optional[dict]) -> bool:
    """Equality match on ``id`` or on any field of the record's data."""
    for key, expected in (conditions or {}).items():
        if key == "id":
            if record.get("id") != expected:
                return False
        elif record.get("data", {}).get(key) != expected:
            return False
    return True


def _require_conditions(operation: str, conditions: Optional[dict]) -> None:
    if not conditions:
        raise PersistenceError(
            f"{operation} requires at least one condition", operation=operation,
        )


# ── SQL adapters ──


@asynccontextmanager
async def _guard(operation: str):
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"[Store] {operation} failed: {exc}")
        raise PersistenceError(f"{operation} failed: {exc}", operation=operation) from exc


class SqlExecutionStore:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def create(
        self, workflow_id: str, status: ExecutionStatus, start_time: datetime, input: Any,
    ) -> str:
        record = ExecutionRecord(
            workflow_id=workflow_id, status=status, start_time=start_time, input=input,
        )
        async with _guard("create_execution"):
            async with self._session_factory() as session:
                model = await Repository(session).create_execution(record)
                return model.id

    async def update(self, execution_id: str, updates: dict[str, Any]) -> None:
        async with _guard("update_execution"):
            async with self._session_factory() as session:
                repo = Repository(session)
                current = await repo.get_execution(execution_id)
                if current is None:
                    raise PersistenceError(
                        f"Execution {execution_id} not found", operation="update_execution",
                    )
                if ExecutionStatus(current.status) in TERMINAL_STATUSES:
                    raise PersistenceError(
                        f"Execution {execution_id} is already {current.status}",
                        operation="update_execution",
                    )
                await repo.update_execution(execution_id, updates)


class SqlNotificationSink:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def create(self, notification: NotificationRecord) -> str:
        async with _guard("create_notification"):
            async with self._session_factory() as session:
                model = await Repository(session).create_notification(notification)
                return model.id


def _record_dict(model) -> dict:
    return {
        "id": model.id,
        "table": model.table_name,
        "data": dict(model.data or {}),
        "created_at": model.created_at.isoformat() if model.created_at else None,
        "updated_at": model.updated_at.isoformat() if model.updated_at else None,
    }


class SqlDataSink:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def insert(self, user_id: str, table: str, data: dict) -> dict:
        async with _guard("insert_record"):
            async with self._session_factory() as session:
                model = await Repository(session).insert_record(user_id, table, data)
                return _record_dict(model)

    async def update(self, user_id: str, table: str, conditions: dict, data: dict) -> list[dict]:
        _require_conditions("update_records", conditions)
        async with _guard("update_records"):
            async with self._session_factory() as session:
                repo = Repository(session)
                rows = [
                    m for m in await repo.list_records(user_id, table)
                    if matches(_record_dict(m), conditions)
                ]
                updated = await repo.update_records(rows, data)
                return [_record_dict(m) for m in updated]

    async def find(self, user_id: str, table: str, conditions: Optional[dict] = None) -> list[dict]:
        async with _guard("find_records"):
            async with self._session_factory() as session:
                rows = await Repository(session).list_records(user_id, table)
                return [r for r in map(_record_dict, rows) if matches(r, conditions)]

    async def delete(self, user_id: str, table: str, conditions: dict) -> int:
        _require_conditions("delete_records", conditions)
        async with _guard("delete_records"):
            async with self._session_factory() as session:
                repo = Repository(session)
                rows = [
                    m for m in await repo.list_records(user_id, table)
                    if matches(_record_dict(m), conditions)
                ]
                return await repo.delete_records(rows)


# ── In-memory adapters ──


class InMemoryExecutionStore:
    """Dict-backed ExecutionStore. Terminal updates are applied under a lock."""

    def __init__(self):
        self.records: dict[str, ExecutionRecord] = {}
        self._lock = asyncio.Lock()

    async def create(
        self, workflow_id: str, status: ExecutionStatus, start_time: datetime, input: Any,
    ) -> str:
        record = ExecutionRecord(
            workflow_id=workflow_id, status=status, start_time=start_time,
            input=copy.deepcopy(input),
        )
        async with self._lock:
            self.records[record.id] = record
        return record.id

    async def update(self, execution_id: str, updates: dict[str, Any]) -> None:
        async with self._lock:
            current = self.records.get(execution_id)
            if current is None:
                raise PersistenceError(
                    f"Execution {execution_id} not found", operation="update_execution",
                )
            if current.status in TERMINAL_STATUSES:
                raise PersistenceError(
                    f"Execution {execution_id} is already {current.status.value}",
                    operation="update_execution",
                )
            self.records[execution_id] = current.model_copy(update=copy.deepcopy(updates))

    def get(self, execution_id: str) -> Optional[ExecutionRecord]:
        return self.records.get(execution_id)


class InMemoryNotificationSink:
    def __init__(self):
        self.notifications: list[NotificationRecord] = []

    async def create(self, notification: NotificationRecord) -> str:
        self.notifications.append(notification)
        return notification.id

    def for_user(self, user_id: str) -> list[NotificationRecord]:
        return [n for n in self.notifications if n.user_id == user_id]


class InMemoryDataSink:
    def __init__(self):
        self.tables: dict[tuple[str, str], list[dict]] = {}

    def _rows(self, user_id: str, table: str) -> list[dict]:
        return self.tables.setdefault((user_id, table), [])

    async def insert(self, user_id: str, table: str, data: dict) -> dict:
        now = datetime.now(timezone.utc).isoformat()
        record = {
            "id": str(uuid.uuid4()),
            "table": table,
            "data": copy.deepcopy(data),
            "created_at": now,
            "updated_at": now,
        }
        self._rows(user_id, table).append(record)
        return copy.deepcopy(record)

    async def update(self, user_id: str, table: str, conditions: dict, data: dict) -> list[dict]:
        _require_conditions("update_records", conditions)
        now = datetime.now(timezone.utc).isoformat()
        updated = []
        for record in self._rows(user_id, table):
            if matches(record, conditions):
                record["data"] = {**record["data"], **copy.deepcopy(data)}
                record["updated_at"] = now
                updated.append(copy.deepcopy(record))
        return updated

    async def find(self, user_id: str, table: str, conditions: Optional[dict] = None) -> list[dict]:
        return [copy.deepcopy(r) for r in self._rows(user_id, table) if matches(r, conditions)]

    async def delete(self, user_id: str, table: str, conditions: dict) -> int:
        _require_conditions("delete_records", conditions)
        rows = self._rows(user_id, table)
        kept = [r for r in rows if not matches(r, conditions)]
        self.tables[(user_id, table)] = kept
        return len(rows) - len(kept)
