"""Action Dispatcher: handler registry, @action plugins, built-in handlers."""

from minizap.actions.plugin import action, get_registered_actions
from minizap.actions.registry import ActionHandler, ActionRegistry, FunctionHandler

__all__ = [
    "action",
    "get_registered_actions",
    "ActionHandler",
    "ActionRegistry",
    "FunctionHandler",
]
