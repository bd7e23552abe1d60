"""Execution history."""

from fastapi import APIRouter, Depends, HTTPException, Query

from minizap.api.deps import get_repository
from minizap.api.schemas import ExecutionResponse
from minizap.db.repository import Repository

router = APIRouter(tags=["executions"])


@router.get("/workflows/{workflow_id}/executions")
async def list_executions(
    workflow_id: str,
    limit: int = Query(50, ge=1, le=500),
    repo: Repository = Depends(get_repository),
):
    """Executions for a workflow, newest first."""
    rows = await repo.list_executions(workflow_id, limit=limit)
    return {"executions": [ExecutionResponse.model_validate(r).model_dump(mode="json") for r in rows]}


@router.get("/executions/{execution_id}", response_model=ExecutionResponse)
async def get_execution(execution_id: str, repo: Repository = Depends(get_repository)):
    row = await repo.get_execution(execution_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return ExecutionResponse.model_validate(row)
