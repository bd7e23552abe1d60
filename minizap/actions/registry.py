"""Central registry of action handlers, and the single dispatch entry point."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable

from minizap.exceptions import ActionDispatchError, ActionFaultError
from minizap.types import ActionResult, ActionSpec, ExecutionContext

logger = logging.getLogger(__name__)

HandlerFunction = Callable[
    [dict, ExecutionContext],
    Union[ActionResult, Awaitable[ActionResult]],
]


@runtime_checkable
class ActionHandler(Protocol):
    """One action kind's side effect and result contract.

    ``execute`` must return an ActionResult. Built-in handlers catch their own
    faults and report them as ``ActionResult(success=False)``.
    """

    action_type: str

    async def execute(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        ...


class FunctionHandler:
    """Adapts a plain ``(config, context) -> ActionResult`` function (sync or async)."""

    def __init__(self, action_type: str, fn: HandlerFunction):
        self.action_type = action_type
        self._fn = fn

    async def execute(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        result = self._fn(config, context)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"FunctionHandler({self.action_type!r}, {getattr(self._fn, '__name__', self._fn)!r})"


class ActionRegistry:
    """Maps action type strings to handlers."""

    def __init__(self):
        self._handlers: dict[str, ActionHandler] = {}

    def register(self, handler: ActionHandler, replace: bool = False) -> None:
        """Register a handler under ``handler.action_type``.

        Args:
            handler: Object implementing the ActionHandler protocol
            replace: Allow overwriting an existing registration

        Raises:
            ValueError: if the type is empty or already registered and replace is False
        """
        action_type = getattr(handler, "action_type", "")
        if not action_type:
            raise ValueError(f"Handler {handler!r} has no action_type")
        if action_type in self._handlers and not replace:
            raise ValueError(f"Action type '{action_type}' is already registered")
        self._handlers[action_type] = handler

    def register_function(self, action_type: str, fn: HandlerFunction, replace: bool = False) -> None:
        """Register a plain function as the handler for *action_type*."""
        self.register(FunctionHandler(action_type, fn), replace=replace)

    def get(self, action_type: str) -> ActionHandler:
        """Get the handler for *action_type*.

        Raises:
            ActionDispatchError: if no handler is registered for the type
        """
        if action_type not in self._handlers:
            raise ActionDispatchError(f"Unknown action type: {action_type}", action_type=action_type)
        return self._handlers[action_type]

    def list_types(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, action_type: str) -> bool:
        return action_type in self._handlers

    async def dispatch(self, action: ActionSpec, context: ExecutionContext) -> ActionResult:
        """Route one already-resolved action to its handler.

        Returns:
            The handler's ActionResult, or a failed result for an unknown type.

        Raises:
            ActionFaultError: if the handler raised, or returned something that
                is not an ActionResult.
        """
        try:
            handler = self.get(action.type)
        except ActionDispatchError as exc:
            logger.warning(f"[Dispatcher] {exc}")
            return ActionResult.fail(str(exc))

        try:
            result = await handler.execute(action.config, context)
        except Exception as exc:
            logger.error(f"[Dispatcher] Handler '{action.type}' raised: {exc}", exc_info=True)
            raise ActionFaultError(
                str(exc) or exc.__class__.__name__,
                action_type=action.type,
            ) from exc

        if not isinstance(result, ActionResult):
            raise ActionFaultError(
                f"Handler '{action.type}' returned {type(result).__name__}, expected ActionResult",
                action_type=action.type,
            )
        return result
