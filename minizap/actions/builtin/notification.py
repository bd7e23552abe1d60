"""Explicit success notification written to the NotificationSink."""

from typing import Any

from minizap.actions.builtin.base import BaseHandler
from minizap.db.stores import NotificationSink
from minizap.types import ActionResult, ExecutionContext, NotificationRecord, NotificationType


class NotificationHandler(BaseHandler):
    action_type = "notification"
    label = "Notification"

    def __init__(self, sink: NotificationSink):
        self.sink = sink

    async def run(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        await self.sink.create(NotificationRecord(
            user_id=context.user_id,
            type=NotificationType.WORKFLOW_SUCCESS,
            message=str(config.get("message") or "Workflow completed successfully"),
            metadata={
                "workflowId": context.workflow_id,
                "context": dict(context.step_results),
            },
        ))
        return ActionResult.ok({"message": "Notification sent"})
