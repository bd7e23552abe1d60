"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Requests ──

class ExecuteRequest(BaseModel):
    data: Any = None                    # trigger input; defaults to {}


class IntegrationCreateRequest(BaseModel):
    user_id: str
    service: str
    name: str = Field(min_length=1)
    credentials: dict[str, Any]


# ── Responses ──

class ExecutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    status: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    input: Any = None
    output: Optional[dict] = None
    error: Optional[str] = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    user_id: str
    type: str
    message: str
    metadata: dict = Field(default_factory=dict, validation_alias="metadata_")
    is_read: bool = False
    created_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    success: bool = True
    data: list[NotificationResponse]
    meta: dict[str, int]


class IntegrationResponse(BaseModel):
    """An integration without its credentials."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    service: str
    name: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
