"""Inbound webhook trigger. Public: no authentication.

Trigger data is the parsed body (JSON, else ``{"raw_body": text}``) merged with
the request's ``headers``, ``method`` and ``query``.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from minizap.api.deps import get_repository, get_runtime
from minizap.core.factory import Runtime
from minizap.db.repository import Repository
from minizap.exceptions import PersistenceError
from minizap.types import TriggerType

logger = logging.getLogger(__name__)
router = APIRouter(tags=["webhooks"])


async def _trigger_data(request: Request) -> dict:
    raw = await request.body()
    data: dict = {}
    if raw:
        text = raw.decode("utf-8", errors="replace")
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
            if "application/json" not in request.headers.get("content-type", ""):
                data = {"raw_body": text}
        if isinstance(parsed, dict):
            data = parsed
        elif parsed is not None:
            data = {"body": parsed}
    return {
        **data,
        "headers": dict(request.headers),
        "method": request.method,
        "query": dict(request.query_params),
    }


@router.post("/webhooks/{workflow_id}")
async def receive_webhook(
    workflow_id: str,
    request: Request,
    repo: Repository = Depends(get_repository),
    runtime: Runtime = Depends(get_runtime),
):
    record = await repo.get_workflow(workflow_id, active_only=True)
    if record is None:
        raise HTTPException(status_code=404, detail="Webhook not found or inactive")
    workflow = Repository.to_definition(record)
    if not workflow.has_trigger(TriggerType.WEBHOOK.value):
        raise HTTPException(status_code=404, detail="Webhook not found or inactive")

    trigger_data = await _trigger_data(request)
    try:
        result = await runtime.engine.execute_workflow(workflow, trigger_data)
    except PersistenceError as exc:
        logger.error(f"[API] Webhook run of {workflow_id} lost its audit trail: {exc}")
        raise HTTPException(status_code=500, detail=str(exc))

    await repo.record_workflow_run(workflow_id)
    return {
        "success": True,
        "message": "Webhook received and workflow executed",
        "executionId": result.execution_id,
    }
