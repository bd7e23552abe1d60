"""Structured JSON logging callback for engine lifecycle events."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from minizap.callbacks.base import BaseCallback

logger = logging.getLogger("minizap.audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _clip(value: Any) -> Any:
    if isinstance(value, (int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_clip(v) for v in value]
    return str(value)[:200]


class LoggingCallback(BaseCallback):
    """Emits one JSON object per lifecycle event on the ``minizap.audit`` logger.

    Each line carries ``event``, ``ts`` (ISO-8601 UTC) and the event's fields.
    Failed runs log at ERROR, everything else at INFO.
    """

    def _emit(self, event: str, data: dict[str, Any], level: int = logging.INFO) -> None:
        logger.log(level, json.dumps({
            "event": event,
            "ts": _now(),
            **{k: _clip(v) for k, v in data.items()},
        }))

    async def on_execution_started(self, data: dict[str, Any]) -> None:
        self._emit("execution_started", data)

    async def on_trigger_validated(self, data: dict[str, Any]) -> None:
        self._emit("trigger_validated", data)

    async def on_action_completed(self, data: dict[str, Any]) -> None:
        self._emit("action_completed", data)

    async def on_execution_completed(self, data: dict[str, Any]) -> None:
        self._emit("execution_completed", data)

    async def on_execution_failed(self, data: dict[str, Any]) -> None:
        self._emit("execution_failed", data, level=logging.ERROR)
