"""minizap: a linear workflow automation engine.

Usage:
    from minizap.config import load_workflow_file
    from minizap.core.factory import build_memory_runtime

    runtime = build_memory_runtime()
    result = await runtime.engine.execute_workflow(load_workflow_file("flow.yaml"), {"email": "a@b.com"})
"""

from minizap.types import (
    TriggerType, ActionType, ExecutionStatus, NotificationType,
    TriggerSpec, ActionSpec, WorkflowConfiguration, WorkflowDefinition,
    ActionResult, ExecutionContext, ExecutionRecord, NotificationRecord, WorkflowRunResult,
)
from minizap.exceptions import (
    MinizapError, WorkflowError, WorkflowNotFound, WorkflowValidationError,
    WorkflowRunError, TriggerValidationError, ActionDispatchError, ActionFaultError,
    PersistenceError, CredentialError, IntegrationNotFound, HandlerConfigError,
)
from minizap.actions.plugin import action
from minizap.version import __version__

__all__ = [
    "TriggerType", "ActionType", "ExecutionStatus", "NotificationType",
    "TriggerSpec", "ActionSpec", "WorkflowConfiguration", "WorkflowDefinition",
    "ActionResult", "ExecutionContext", "ExecutionRecord", "NotificationRecord", "WorkflowRunResult",
    "MinizapError", "WorkflowError", "WorkflowNotFound", "WorkflowValidationError",
    "WorkflowRunError", "TriggerValidationError", "ActionDispatchError", "ActionFaultError",
    "PersistenceError", "CredentialError", "IntegrationNotFound", "HandlerConfigError",
    "action",
    "__version__",
]
