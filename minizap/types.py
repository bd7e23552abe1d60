"""All shared types, enums, and type aliases. Everything imports from here."""

from enum import Enum
from typing import Any, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ──────────────────────────────────────────────────────────────

class TriggerType(str, Enum):
    WEBHOOK = "webhook"
    MANUAL = "manual"
    EMAIL = "email"         # recognized, condition check not implemented
    SCHEDULE = "schedule"   # recognized, condition check not implemented

class ActionType(str, Enum):
    EMAIL = "email"
    WEBHOOK = "webhook"     # outbound HTTP
    DATABASE = "database"
    SMS = "sms"
    NOTIFICATION = "notification"
    DELAY = "delay"

class ExecutionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

class NotificationType(str, Enum):
    WORKFLOW_SUCCESS = "workflow_success"
    WORKFLOW_ERROR = "workflow_error"
    USAGE_WARNING = "usage_warning"


TERMINAL_STATUSES = frozenset({ExecutionStatus.COMPLETED, ExecutionStatus.FAILED})


# ── Workflow definition (owned externally, read-only to the engine) ────

class TriggerSpec(BaseModel):
    """What starts a run. ``type`` stays a plain string so unknown types reach the engine."""
    type: str
    config: dict[str, Any] = Field(default_factory=dict)

class ActionSpec(BaseModel):
    """One step of work. ``config`` may hold ``{{path}}`` placeholders."""
    type: str
    config: dict[str, Any] = Field(default_factory=dict)

class WorkflowConfiguration(BaseModel):
    triggers: list[TriggerSpec] = Field(default_factory=list)
    actions: list[ActionSpec] = Field(default_factory=list)   # execution order

class WorkflowDefinition(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str                        # owner; failure notifications go here
    name: str
    description: str = ""
    configuration: WorkflowConfiguration = Field(default_factory=WorkflowConfiguration)
    is_active: bool = True

    def has_trigger(self, trigger_type: str) -> bool:
        return any(t.type == trigger_type for t in self.configuration.triggers)


# ── Run-time shapes ────────────────────────────────────────────────────

class ActionResult(BaseModel):
    """Universal contract returned by every handler and by trigger validation."""
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, data: Any = None) -> "ActionResult":
        return cls(success=False, error=error, data=data)


class ExecutionContext(BaseModel):
    """State owned by exactly one in-flight run. Discarded when the run ends.

    ``variables`` is the templating scope (``trigger``, ``action_<i>_result``);
    ``step_results`` becomes the run's recorded output. Both only grow.
    """
    workflow_id: str
    user_id: str
    trigger_data: Any = None
    variables: dict[str, Any] = Field(default_factory=dict)
    step_results: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def start(cls, workflow: WorkflowDefinition, trigger_data: Any) -> "ExecutionContext":
        return cls(
            workflow_id=workflow.id,
            user_id=workflow.user_id,
            trigger_data=trigger_data,
            variables={"trigger": trigger_data},
        )

    def record_trigger(self, trigger_type: str, data: Any) -> bool:
        """Store a validated trigger's result. Returns False if that key is already taken."""
        key = f"trigger_{trigger_type}"
        if key in self.step_results:
            return False
        self.step_results[key] = data
        return True

    def record_action(self, index: int, data: Any) -> None:
        key = f"action_{index}"
        if key in self.step_results:
            raise ValueError(f"Step '{key}' already recorded")
        self.step_results[key] = data
        self.variables[f"action_{index}_result"] = data


class ExecutionRecord(BaseModel):
    """Persisted record of one run."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    workflow_id: str
    status: ExecutionStatus = ExecutionStatus.RUNNING
    start_time: datetime = Field(default_factory=_utcnow)
    end_time: Optional[datetime] = None
    input: Any = None
    output: Optional[dict[str, Any]] = None     # set only when completed
    error: Optional[str] = None                 # set only when failed

class NotificationRecord(BaseModel):
    """User-facing alert."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    type: NotificationType
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

class WorkflowRunResult(BaseModel):
    """What ``execute_workflow`` hands back to the route / CLI layer."""
    success: bool
    execution_id: str
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None
