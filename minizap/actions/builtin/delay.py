"""Suspend the current run for ``duration`` milliseconds."""

import asyncio
from typing import Any, Optional

from minizap.actions.builtin.base import BaseHandler
from minizap.exceptions import HandlerConfigError
from minizap.types import ActionResult, ExecutionContext


def parse_duration(raw: Any, default: int, maximum: Optional[int] = None) -> int:
    """Milliseconds from an int, float or numeric string. Empty means *default*.

    Negative, non-finite and over-*maximum* values are rejected.
    """
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        raise HandlerConfigError(f"Invalid delay duration: {raw!r}")
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError) as exc:
        raise HandlerConfigError(f"Invalid delay duration: {raw!r}") from exc
    if value < 0:
        raise HandlerConfigError(f"Invalid delay duration: {raw!r}")
    if maximum is not None and value > maximum:
        raise HandlerConfigError(f"Invalid delay duration: {raw!r} exceeds the {maximum}ms limit")
    return value


class DelayHandler(BaseHandler):
    action_type = "delay"
    label = "Delay"

    def __init__(self, default_ms: int = 1000, max_ms: Optional[int] = 3_600_000):
        self.default_ms = default_ms
        self.max_ms = max_ms

    async def run(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        delay_ms = parse_duration(config.get("duration"), self.default_ms, self.max_ms)
        await asyncio.sleep(delay_ms / 1000)
        return ActionResult.ok({"message": f"Delayed for {delay_ms}ms"})
