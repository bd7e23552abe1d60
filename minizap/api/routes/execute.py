"""Manual workflow execution."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from minizap.api.deps import get_repository, get_runtime
from minizap.api.schemas import ExecuteRequest
from minizap.core.factory import Runtime
from minizap.db.repository import Repository
from minizap.exceptions import PersistenceError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["execute"])


@router.post("/workflows/{workflow_id}/execute")
async def execute_workflow(
    workflow_id: str,
    body: Optional[ExecuteRequest] = None,
    repo: Repository = Depends(get_repository),
    runtime: Runtime = Depends(get_runtime),
):
    """Run an active workflow once with ``body.data`` as trigger input."""
    record = await repo.get_workflow(workflow_id, active_only=True)
    if record is None:
        raise HTTPException(status_code=404, detail="Workflow not found or inactive")

    workflow = Repository.to_definition(record)
    trigger_data = body.data if body is not None and body.data is not None else {}
    try:
        result = await runtime.engine.execute_workflow(workflow, trigger_data)
    except PersistenceError as exc:
        logger.error(f"[API] Execution of {workflow_id} lost its audit trail: {exc}")
        raise HTTPException(status_code=500, detail=str(exc))

    await repo.record_workflow_run(workflow_id)
    return {"success": True, "data": result.model_dump(mode="json")}
