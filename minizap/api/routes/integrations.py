"""Integration credentials: store (encrypted), list, delete."""

from fastapi import APIRouter, Depends, HTTPException

from minizap.api.deps import get_encryption, get_repository
from minizap.api.schemas import IntegrationCreateRequest, IntegrationResponse
from minizap.credentials.encryption import CredentialEncryption
from minizap.credentials.integrations import SERVICE_FIELDS, store_integration
from minizap.db.repository import Repository
from minizap.exceptions import CredentialError

router = APIRouter(tags=["integrations"])


@router.get("/integrations")
async def list_integrations(user_id: str, repo: Repository = Depends(get_repository)):
    rows = await repo.list_integrations(user_id)
    return {"success": True, "data": [IntegrationResponse.model_validate(r) for r in rows]}


@router.post("/integrations", status_code=201)
async def create_integration(
    body: IntegrationCreateRequest,
    repo: Repository = Depends(get_repository),
    encryption: CredentialEncryption = Depends(get_encryption),
):
    try:
        model = await store_integration(repo, encryption, body.user_id, body.service, body.name, body.credentials)
    except CredentialError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"success": True, "data": IntegrationResponse.model_validate(model)}


@router.get("/integrations/types")
async def list_integration_types():
    return {"types": [{"service": s, "fields": list(f)} for s, f in SERVICE_FIELDS.items()]}


@router.delete("/integrations/{integration_id}")
async def delete_integration(integration_id: str, user_id: str, repo: Repository = Depends(get_repository)):
    if not await repo.delete_integration(integration_id, user_id=user_id):
        raise HTTPException(status_code=404, detail="Integration not found")
    return {"success": True}
