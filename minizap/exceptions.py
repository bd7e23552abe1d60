"""Typed exception hierarchy. Every error minizap can raise."""


class MinizapError(Exception):
    """Base exception for all minizap errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


# ── Workflow definitions ─────────────────────────────────────────────────────


class WorkflowError(MinizapError):
    """Base exception for workflow definition errors."""
    pass


class WorkflowNotFound(WorkflowError):
    """Requested workflow does not exist or is not active."""
    def __init__(self, message: str, workflow_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.workflow_id = workflow_id


class WorkflowValidationError(WorkflowError):
    """Workflow definition is structurally invalid (missing fields, bad shapes)."""
    def __init__(self, message: str, violations: list = None, **kwargs):
        super().__init__(message, **kwargs)
        self.violations = violations or []


# ── Run failures (recovered by the engine into a failed execution) ───────────


class WorkflowRunError(MinizapError):
    """A run step failed. The engine records it as a failed execution."""
    pass


class TriggerValidationError(WorkflowRunError):
    """A trigger did not validate (e.g. unknown trigger type)."""
    def __init__(self, message: str, trigger_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.trigger_type = trigger_type


class ActionDispatchError(WorkflowRunError):
    """An action returned a failed result (unknown type or handler-reported failure)."""
    def __init__(self, message: str, action_index: int = 0, action_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.action_index = action_index
        self.action_type = action_type


class ActionFaultError(WorkflowRunError):
    """A handler raised instead of returning an ActionResult."""
    def __init__(self, message: str, action_index: int = 0, action_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.action_index = action_index
        self.action_type = action_type


# ── Collaborators ────────────────────────────────────────────────────────────


class PersistenceError(MinizapError):
    """Execution / notification / data store is unreachable or rejected a write.

    Never swallowed by the engine: losing the audit trail must be visible.
    """
    def __init__(self, message: str, operation: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation


class CredentialError(MinizapError):
    """Credential retrieval or decryption failed."""
    pass


class IntegrationNotFound(CredentialError):
    """No active integration for this user and service."""
    def __init__(self, message: str, service: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.service = service


class HandlerConfigError(MinizapError):
    """An action handler received a config it cannot use."""
    pass
