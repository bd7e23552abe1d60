"""Trigger validation: decides whether a run may proceed past its triggers.

``webhook`` and ``manual`` triggers are satisfied by the fact that the run was
invoked at all. ``email`` and ``schedule`` are recognized but carry no
condition check yet, so they also pass unconditionally. Any other type fails.
"""

from __future__ import annotations

import logging
from typing import Callable

from minizap.types import ActionResult, ExecutionContext, TriggerSpec, TriggerType

logger = logging.getLogger(__name__)

TriggerValidator = Callable[[TriggerSpec, ExecutionContext], ActionResult]


def _pass_through(trigger: TriggerSpec, context: ExecutionContext) -> ActionResult:
    return ActionResult.ok(context.trigger_data)


def _unchecked(trigger: TriggerSpec, context: ExecutionContext) -> ActionResult:
    # TODO: inbox polling for email triggers and due-time checks for schedule triggers
    logger.debug("[Triggers] '%s' trigger has no condition check; passing", trigger.type)
    return ActionResult.ok(context.trigger_data)


_VALIDATORS: dict[str, TriggerValidator] = {
    TriggerType.WEBHOOK.value: _pass_through,
    TriggerType.MANUAL.value: _pass_through,
    TriggerType.EMAIL.value: _unchecked,
    TriggerType.SCHEDULE.value: _unchecked,
}


def validate_trigger(trigger: TriggerSpec, context: ExecutionContext) -> ActionResult:
    """Validate one trigger against the run's context.

    Returns:
        ``ActionResult`` whose ``data`` is the raw trigger input on success, or
        ``error="Unknown trigger type: <type>"`` for unrecognized types.
    """
    validator = _VALIDATORS.get(trigger.type)
    if validator is None:
        return ActionResult.fail(f"Unknown trigger type: {trigger.type}")
    return validator(trigger, context)


def known_trigger_types() -> list[str]:
    return list(_VALIDATORS)
