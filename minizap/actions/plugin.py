"""@action decorator for registering functions as action handlers.

Usage:
    @action("slack")
    async def post_to_slack(config: dict, context: ExecutionContext) -> ActionResult:
        ...

Decorated functions are collected at import time and picked up by
build_default_registry(). Each handler should return ActionResult.fail(...)
for expected failures rather than raising.
"""

import functools
from typing import Callable

from minizap.actions.registry import HandlerFunction

# Global registry for decorated handlers, collected at import time
_registered_actions: dict[str, HandlerFunction] = {}


def action(action_type: str) -> Callable[[HandlerFunction], HandlerFunction]:
    """Decorator to register a ``(config, context) -> ActionResult`` function.

    Args:
        action_type: Unique action type key used in workflow definitions
    """
    if not action_type:
        raise ValueError("action_type must be a non-empty string")

    def decorator(func: HandlerFunction) -> HandlerFunction:
        if action_type in _registered_actions and _registered_actions[action_type] is not func:
            raise ValueError(f"Action type '{action_type}' is already registered")
        _registered_actions[action_type] = func

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return func(*args, **kwargs)

        wrapper._minizap_action = action_type
        return wrapper

    return decorator


def get_registered_actions() -> dict[str, HandlerFunction]:
    """Return all handlers registered via @action."""
    return _registered_actions.copy()


def clear_registered_actions() -> None:
    """Forget every @action registration (test isolation)."""
    _registered_actions.clear()
