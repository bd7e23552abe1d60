"""Shared handler boundary: every built-in handler reports faults as failed results."""

import logging
from typing import Any

from minizap.exceptions import CredentialError, HandlerConfigError
from minizap.types import ActionResult, ExecutionContext

logger = logging.getLogger(__name__)


class BaseHandler:
    """Subclasses implement ``run`` and set ``action_type`` and ``label``.

    ``execute`` is the handler boundary. HandlerConfigError and CredentialError
    become a failed result carrying their own message; any other exception becomes
    ``"<label> action failed: <exc>"``.
    """

    action_type: str = ""
    label: str = ""

    async def execute(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        try:
            return await self.run(config or {}, context)
        except HandlerConfigError as exc:
            return ActionResult.fail(str(exc))
        except CredentialError as exc:
            logger.warning(f"[{self.label}] {exc}")
            return ActionResult.fail(str(exc))
        except Exception as exc:
            logger.warning(f"[{self.label}] Unexpected failure: {exc}", exc_info=True)
            return ActionResult.fail(f"{self.label} action failed: {str(exc) or exc.__class__.__name__}")

    async def run(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        raise NotImplementedError


def require(config: dict[str, Any], keys: tuple[str, ...], message: str) -> None:
    """Raise HandlerConfigError(message) unless every key has a truthy value."""
    if any(not config.get(k) for k in keys):
        raise HandlerConfigError(message)


def timeout_ms(config: dict[str, Any], default: int) -> int:
    """Read ``timeout`` (ms) from config, falling back to *default*."""
    raw = config.get("timeout")
    if raw is None or raw == "":
        return default
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError) as exc:
        raise HandlerConfigError(f"Invalid timeout: {raw!r}") from exc
    if value <= 0:
        raise HandlerConfigError(f"Invalid timeout: {raw!r}")
    return value


_FALSE_WORDS = {"", "0", "false", "no", "off"}


def flag(value: Any) -> bool:
    """Truthiness for config switches; strings like "false" or "0" are off."""
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_WORDS
    return bool(value)
