"""Resolver, trigger validation and the execution engine."""

from minizap.core.engine import WorkflowEngine
from minizap.core.resolver import resolve
from minizap.core.triggers import validate_trigger

__all__ = ["WorkflowEngine", "resolve", "validate_trigger"]
