"""Callback protocol for engine lifecycle events.

The engine accepts callbacks as plain callables ``cb(event: str, data: dict)``,
sync or async, and calls each registered callback in order. Errors raised by a
callback are logged and never change a run's outcome.

Usage:
    async def on_event(event, data):
        if event == EXECUTION_FAILED:
            print(data["error"])

    engine = WorkflowEngine(..., callbacks=[on_event, LoggingCallback()])
"""

from typing import Any, Awaitable, Protocol, Union, runtime_checkable

EXECUTION_STARTED = "execution_started"
TRIGGER_VALIDATED = "trigger_validated"
ACTION_COMPLETED = "action_completed"
EXECUTION_COMPLETED = "execution_completed"
EXECUTION_FAILED = "execution_failed"

LIFECYCLE_EVENTS = (
    EXECUTION_STARTED,
    TRIGGER_VALIDATED,
    ACTION_COMPLETED,
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
)


@runtime_checkable
class WorkflowCallback(Protocol):
    def __call__(self, event: str, data: dict[str, Any]) -> Union[None, Awaitable[None]]:
        ...


class BaseCallback:
    """Routes ``(event, data)`` calls to ``on_<event>`` methods. Unhandled events are ignored."""

    async def __call__(self, event: str, data: dict[str, Any]) -> None:
        hook = getattr(self, f"on_{event}", None)
        if hook is not None:
            await hook(data)

    async def on_execution_started(self, data: dict[str, Any]) -> None:
        pass

    async def on_trigger_validated(self, data: dict[str, Any]) -> None:
        pass

    async def on_action_completed(self, data: dict[str, Any]) -> None:
        pass

    async def on_execution_completed(self, data: dict[str, Any]) -> None:
        pass

    async def on_execution_failed(self, data: dict[str, Any]) -> None:
        pass
