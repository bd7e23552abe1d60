"""All ORM models. These map 1:1 to the Pydantic types but are SQLAlchemy models.

Tables: workflows, executions, notifications, integrations, data_records
Every user-owned table carries user_id. Indexes on common query patterns.
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, Boolean, Text, Index
from sqlalchemy.orm import DeclarativeBase
from datetime import datetime, timezone
import uuid


class Base(DeclarativeBase):
    pass


class WorkflowModel(Base):
    __tablename__ = "workflows"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    configuration = Column(JSON, default=dict)      # {"triggers": [...], "actions": [...]}
    trigger_type = Column(String, nullable=True)    # first trigger's type, for webhook lookup
    is_active = Column(Boolean, default=True)
    execution_count = Column(Integer, default=0)
    last_executed = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (Index("ix_workflow_user_active", "user_id", "is_active"),)


class ExecutionModel(Base):
    __tablename__ = "executions"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    workflow_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="running")   # ExecutionStatus value
    start_time = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    end_time = Column(DateTime, nullable=True)
    input = Column(JSON, nullable=True)
    output = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)

    __table_args__ = (Index("ix_execution_workflow_started", "workflow_id", "start_time"),)


class NotificationModel(Base):
    __tablename__ = "notifications"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)                       # NotificationType value
    message = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSON, default=dict)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (Index("ix_notification_user_read", "user_id", "is_read"),)


class IntegrationModel(Base):
    __tablename__ = "integrations"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    service = Column(String, nullable=False)            # "gmail" | "sendgrid" | "twilio" | ...
    name = Column(String, nullable=False)
    credentials = Column(Text, nullable=False)          # Fernet ciphertext of a JSON object
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (Index("ix_integration_user_service", "user_id", "service"),)


class DataRecordModel(Base):
    """Generic rows written by the ``database`` action, grouped by table_name."""
    __tablename__ = "data_records"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False)
    table_name = Column(String, nullable=False)
    data = Column(JSON, default=dict)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (Index("ix_data_record_user_table", "user_id", "table_name"),)
