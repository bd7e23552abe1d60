"""Data access layer.

This is the ONLY layer that talks to the database. The engine never sees it
directly; it goes through the store adapters in minizap/db/stores.py.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from minizap.db.models import (
    WorkflowModel, ExecutionModel, NotificationModel, IntegrationModel, DataRecordModel,
)
from minizap.types import (
    ExecutionRecord, NotificationRecord, WorkflowConfiguration, WorkflowDefinition,
)


def _jsonable(value: Any) -> Any:
    """Round-trip through json so datetimes and other objects store as strings."""
    if value is None:
        return None
    return json.loads(json.dumps(value, default=str))


class Repository:
    """All database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Workflows ──

    @staticmethod
    def to_definition(m: WorkflowModel) -> WorkflowDefinition:
        return WorkflowDefinition(
            id=m.id,
            user_id=m.user_id,
            name=m.name,
            description=m.description or "",
            configuration=WorkflowConfiguration.model_validate(m.configuration or {}),
            is_active=bool(m.is_active),
        )

    async def save_workflow(self, workflow: WorkflowDefinition) -> WorkflowModel:
        """Insert a workflow, or overwrite the stored one with the same id."""
        now = datetime.now(timezone.utc)
        triggers = workflow.configuration.triggers
        values = {
            "user_id": workflow.user_id,
            "name": workflow.name,
            "description": workflow.description,
            "configuration": workflow.configuration.model_dump(mode="json"),
            "trigger_type": triggers[0].type if triggers else None,
            "is_active": workflow.is_active,
            "updated_at": now,
        }
        record = await self.session.get(WorkflowModel, workflow.id)
        if record is None:
            record = WorkflowModel(id=workflow.id, created_at=now, **values)
            self.session.add(record)
        else:
            for key, value in values.items():
                setattr(record, key, value)
        await self.session.commit()
        await self.session.refresh(record)
        return record

    async def get_workflow(self, workflow_id: str, active_only: bool = False) -> Optional[WorkflowModel]:
        """Get workflow by ID."""
        query = select(WorkflowModel).where(WorkflowModel.id == workflow_id)
        if active_only:
            query = query.where(WorkflowModel.is_active.is_(True))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def record_workflow_run(self, workflow_id: str) -> None:
        """Bump execution_count and last_executed after a run."""
        record = await self.session.get(WorkflowModel, workflow_id)
        if record is None:
            return
        record.execution_count = (record.execution_count or 0) + 1
        record.last_executed = datetime.now(timezone.utc)
        await self.session.commit()

    # ── Executions ──

    async def create_execution(self, execution: ExecutionRecord) -> ExecutionModel:
        """Persist a new execution row."""
        model = ExecutionModel(
            id=execution.id,
            workflow_id=execution.workflow_id,
            status=execution.status.value,
            start_time=execution.start_time,
            end_time=execution.end_time,
            input=_jsonable(execution.input),
            output=_jsonable(execution.output),
            error=execution.error,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def get_execution(self, execution_id: str) -> Optional[ExecutionModel]:
        result = await self.session.execute(
            select(ExecutionModel).where(ExecutionModel.id == execution_id)
        )
        return result.scalar_one_or_none()

    async def update_execution(self, execution_id: str, updates: dict) -> Optional[ExecutionModel]:
        """Apply partial updates to an execution row in a single commit."""
        model = await self.get_execution(execution_id)
        if model is None:
            return None
        for key, value in updates.items():
            if key in ("input", "output"):
                value = _jsonable(value)
            elif hasattr(value, "value"):
                value = value.value
            if hasattr(model, key):
                setattr(model, key, value)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def list_executions(self, workflow_id: str, limit: int = 50) -> list[ExecutionModel]:
        """List executions for a workflow, newest first."""
        result = await self.session.execute(
            select(ExecutionModel)
            .where(ExecutionModel.workflow_id == workflow_id)
            .order_by(desc(ExecutionModel.start_time))
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Notifications ──

    async def create_notification(self, notification: NotificationRecord) -> NotificationModel:
        model = NotificationModel(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type.value,
            message=notification.message,
            metadata_=_jsonable(notification.metadata) or {},
            is_read=notification.is_read,
            created_at=notification.created_at,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def list_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[NotificationModel]:
        """Paginated notifications for a user, newest first."""
        query = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.where(NotificationModel.is_read.is_(False))
        result = await self.session.execute(
            query.order_by(desc(NotificationModel.created_at)).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count_notifications(self, user_id: str, unread_only: bool = False) -> int:
        query = select(func.count(NotificationModel.id)).where(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.where(NotificationModel.is_read.is_(False))
        result = await self.session.execute(query)
        return int(result.scalar() or 0)

    async def mark_notification_read(self, notification_id: str) -> bool:
        model = await self.session.get(NotificationModel, notification_id)
        if model is None:
            return False
        model.is_read = True
        await self.session.commit()
        return True

    # ── Integrations ──

    async def save_integration(
        self, user_id: str, service: str, name: str, encrypted_credentials: str,
    ) -> IntegrationModel:
        now = datetime.now(timezone.utc)
        model = IntegrationModel(
            user_id=user_id,
            service=service,
            name=name,
            credentials=encrypted_credentials,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def list_integrations(self, user_id: str) -> list[IntegrationModel]:
        result = await self.session.execute(
            select(IntegrationModel)
            .where(IntegrationModel.user_id == user_id)
            .order_by(desc(IntegrationModel.created_at))
        )
        return list(result.scalars().all())

    async def delete_integration(self, integration_id: str, user_id: Optional[str] = None) -> bool:
        """Delete one integration; with *user_id*, only if that user owns it."""
        model = await self.session.get(IntegrationModel, integration_id)
        if model is None or (user_id is not None and model.user_id != user_id):
            return False
        await self.session.delete(model)
        await self.session.commit()
        return True

    async def get_active_integration(self, user_id: str, service: str) -> Optional[IntegrationModel]:
        """Most recently created active integration for (user, service)."""
        result = await self.session.execute(
            select(IntegrationModel)
            .where(
                IntegrationModel.user_id == user_id,
                IntegrationModel.service == service,
                IntegrationModel.is_active.is_(True),
            )
            .order_by(desc(IntegrationModel.created_at))
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ── Data records (database action sink) ──

    async def insert_record(self, user_id: str, table: str, data: dict) -> DataRecordModel:
        now = datetime.now(timezone.utc)
        model = DataRecordModel(
            user_id=user_id, table_name=table, data=_jsonable(data) or {},
            created_at=now, updated_at=now,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def list_records(self, user_id: str, table: str) -> list[DataRecordModel]:
        result = await self.session.execute(
            select(DataRecordModel)
            .where(DataRecordModel.user_id == user_id, DataRecordModel.table_name == table)
            .order_by(DataRecordModel.created_at)
        )
        return list(result.scalars().all())

    async def update_records(self, records: list[DataRecordModel], data: dict) -> list[DataRecordModel]:
        now = datetime.now(timezone.utc)
        for record in records:
            # reassign so the JSON column is flagged dirty
            record.data = {**(record.data or {}), **(_jsonable(data) or {})}
            record.updated_at = now
        await self.session.commit()
        return records

    async def delete_records(self, records: list[DataRecordModel]) -> int:
        for record in records:
            await self.session.delete(record)
        await self.session.commit()
        return len(records)
