"""CRUD against the configured DataSink: generic per-user records grouped by table."""

from typing import Any

from minizap.actions.builtin.base import BaseHandler
from minizap.db.stores import DataSink
from minizap.exceptions import HandlerConfigError
from minizap.types import ActionResult, ExecutionContext


def _mapping(config: dict[str, Any], key: str) -> dict:
    value = config.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise HandlerConfigError(f"Database '{key}' must be a mapping")
    return value


class DatabaseHandler(BaseHandler):
    action_type = "database"
    label = "Database"

    def __init__(self, sink: DataSink):
        self.sink = sink

    async def run(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        operation = config.get("operation")
        if not operation:
            raise HandlerConfigError("Database operation is required")
        table = config.get("table")
        if not table:
            raise HandlerConfigError("Database table is required")
        data = _mapping(config, "data")
        conditions = _mapping(config, "conditions")
        user_id = context.user_id

        if operation == "insert":
            record = await self.sink.insert(user_id, table, data)
            return ActionResult.ok({"operation": "insert", "table": table, "record": record, "id": record["id"]})

        if operation == "update":
            if not conditions:
                raise HandlerConfigError("Update requires conditions")
            records = await self.sink.update(user_id, table, conditions, data)
            return ActionResult.ok({
                "operation": "update", "table": table, "conditions": conditions,
                "records": records, "count": len(records),
            })

        if operation == "find":
            records = await self.sink.find(user_id, table, conditions)
            return ActionResult.ok({
                "operation": "find", "table": table, "conditions": conditions,
                "records": records, "count": len(records),
            })

        if operation == "delete":
            if not conditions:
                raise HandlerConfigError("Delete requires conditions")
            deleted = await self.sink.delete(user_id, table, conditions)
            return ActionResult.ok({
                "operation": "delete", "table": table, "conditions": conditions, "deleted": deleted,
            })

        raise HandlerConfigError(f"Unsupported database operation: {operation}")
