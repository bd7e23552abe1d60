"""Callback/hook system for engine lifecycle events."""

from minizap.callbacks.base import BaseCallback, WorkflowCallback, LIFECYCLE_EVENTS
from minizap.callbacks.logging import LoggingCallback

__all__ = ["BaseCallback", "WorkflowCallback", "LIFECYCLE_EVENTS", "LoggingCallback"]
