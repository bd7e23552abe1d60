"""Workflow execution engine. One call to ``execute_workflow`` is one run.

    create execution (running)
      → validate triggers in order          (first failure aborts)
      → for each action in order:
            resolve {{placeholders}} against the current variables
            dispatch → ActionResult         (first failure aborts)
            record action_<i> / action_<i>_result
      → completed (output = step results)  | failed (error) + workflow_error notification

Run-level failures (bad trigger, failed or faulting action, unexpected bugs)
end as a failed execution and never escape. PersistenceError always
propagates: a run whose audit trail cannot be written must be visible to the
caller.
"""

import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from minizap.actions.registry import ActionRegistry
from minizap.callbacks.base import (
    ACTION_COMPLETED, EXECUTION_COMPLETED, EXECUTION_FAILED, EXECUTION_STARTED, TRIGGER_VALIDATED,
)
from minizap.core.resolver import resolve
from minizap.core.triggers import validate_trigger
from minizap.db.stores import ExecutionStore, NotificationSink
from minizap.exceptions import (
    ActionDispatchError, ActionFaultError, PersistenceError, TriggerValidationError, WorkflowRunError,
)
from minizap.types import (
    ActionSpec, ExecutionContext, ExecutionStatus, NotificationRecord, NotificationType,
    WorkflowDefinition, WorkflowRunResult,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowEngine:
    """Runs workflow definitions against injected collaborators.

    Args:
        registry: Action dispatcher
        execution_store: Receives one create and exactly one terminal update per run
        notification_sink: Receives the workflow_error notification of a failed run
        callbacks: ``cb(event, data)`` callables, sync or async
    """

    def __init__(
        self,
        registry: ActionRegistry,
        execution_store: ExecutionStore,
        notification_sink: NotificationSink,
        callbacks: Optional[list] = None,
    ):
        self.registry = registry
        self.execution_store = execution_store
        self.notification_sink = notification_sink
        self.callbacks = callbacks or []

    async def execute_workflow(
        self,
        workflow: WorkflowDefinition,
        trigger_data: Any = None,
    ) -> WorkflowRunResult:
        """Run *workflow* once with *trigger_data* as input.

        Returns:
            WorkflowRunResult with ``data`` (the step results) on success or
            ``error`` on failure.

        Raises:
            PersistenceError: the execution or notification store failed.
        """
        if trigger_data is None:
            trigger_data = {}

        execution_id = await self.execution_store.create(
            workflow.id, ExecutionStatus.RUNNING, _now(), trigger_data,
        )
        context = ExecutionContext.start(workflow, trigger_data)
        logger.info(
            f"[Engine] execute_workflow wf={workflow.id} execution={execution_id} "
            f"triggers={len(workflow.configuration.triggers)} actions={len(workflow.configuration.actions)}"
        )
        await self._fire_callbacks(EXECUTION_STARTED, {
            "workflow_id": workflow.id,
            "execution_id": execution_id,
            "user_id": workflow.user_id,
            "trigger_count": len(workflow.configuration.triggers),
            "action_count": len(workflow.configuration.actions),
        })

        try:
            await self._run_triggers(workflow, context, execution_id)
            await self._run_actions(workflow, context, execution_id)
        except PersistenceError:
            raise
        except WorkflowRunError as exc:
            logger.info(f"[Engine] execution={execution_id} failed: {exc}")
            return await self._fail(workflow, context, execution_id, str(exc))
        except Exception as exc:
            logger.error(f"[Engine] execution={execution_id} crashed: {exc}", exc_info=True)
            return await self._fail(workflow, context, execution_id, str(exc) or exc.__class__.__name__)

        return await self._complete(workflow, context, execution_id)

    async def _run_triggers(self, workflow: WorkflowDefinition, context: ExecutionContext, execution_id: str) -> None:
        for trigger in workflow.configuration.triggers:
            result = validate_trigger(trigger, context)
            if not result.success:
                raise TriggerValidationError(
                    result.error or f"Trigger '{trigger.type}' failed validation",
                    trigger_type=trigger.type,
                )
            if not context.record_trigger(trigger.type, result.data):
                logger.debug(f"[Engine] Duplicate trigger '{trigger.type}' ignored; first result kept")
                continue
            await self._fire_callbacks(TRIGGER_VALIDATED, {
                "execution_id": execution_id,
                "trigger_type": trigger.type,
            })

    async def _run_actions(self, workflow: WorkflowDefinition, context: ExecutionContext, execution_id: str) -> None:
        for index, action in enumerate(workflow.configuration.actions):
            position = index + 1
            resolved = ActionSpec(type=action.type, config=resolve(action.config, context.variables))
            try:
                result = await self.registry.dispatch(resolved, context)
            except ActionFaultError as exc:
                raise ActionFaultError(
                    f"Action {position} error: {exc}",
                    action_index=index,
                    action_type=action.type,
                ) from exc

            if not result.success:
                raise ActionDispatchError(
                    f"Action {position} failed: {result.error}",
                    action_index=index,
                    action_type=action.type,
                )

            context.record_action(index, result.data)
            logger.debug(f"[Engine] execution={execution_id} action {position} ({action.type}) ok")
            await self._fire_callbacks(ACTION_COMPLETED, {
                "execution_id": execution_id,
                "action_index": index,
                "action_type": action.type,
            })

    async def _complete(
        self, workflow: WorkflowDefinition, context: ExecutionContext, execution_id: str,
    ) -> WorkflowRunResult:
        output = dict(context.step_results)
        await self.execution_store.update(execution_id, {
            "status": ExecutionStatus.COMPLETED,
            "end_time": _now(),
            "output": output,
        })
        logger.info(f"[Engine] execution={execution_id} completed ({len(output)} steps)")
        await self._fire_callbacks(EXECUTION_COMPLETED, {
            "workflow_id": workflow.id,
            "execution_id": execution_id,
            "steps": list(output),
        })
        return WorkflowRunResult(success=True, execution_id=execution_id, data=output)

    async def _fail(
        self, workflow: WorkflowDefinition, context: ExecutionContext, execution_id: str, error: str,
    ) -> WorkflowRunResult:
        await self.execution_store.update(execution_id, {
            "status": ExecutionStatus.FAILED,
            "end_time": _now(),
            "error": error,
        })
        await self.notification_sink.create(NotificationRecord(
            user_id=workflow.user_id,
            type=NotificationType.WORKFLOW_ERROR,
            message=f'Workflow "{workflow.name}" failed: {error}',
            metadata={"workflowId": workflow.id, "executionId": execution_id},
        ))
        await self._fire_callbacks(EXECUTION_FAILED, {
            "workflow_id": workflow.id,
            "execution_id": execution_id,
            "error": error,
            "steps": list(context.step_results),
        })
        return WorkflowRunResult(success=False, execution_id=execution_id, error=error)

    async def _fire_callbacks(self, event: str, data: dict) -> None:
        """Invoke all registered callbacks for a lifecycle event."""
        for cb in self.callbacks:
            try:
                result = cb(event, data)
                if inspect.isawaitable(result):
                    await result
            except Exception as cb_exc:
                logger.warning(f"[Engine] Callback error on '{event}': {cb_exc}")
