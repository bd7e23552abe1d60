"""Request-scoped dependencies shared by the routes."""

from typing import AsyncIterator

from fastapi import HTTPException, Request

from minizap.core.factory import Runtime
from minizap.credentials.encryption import CredentialEncryption
from minizap.db.repository import Repository


async def get_repository(request: Request) -> AsyncIterator[Repository]:
    async with request.app.state.session_factory() as session:
        yield Repository(session)


def get_runtime(request: Request) -> Runtime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Workflow engine unavailable")
    return runtime


def get_encryption(request: Request) -> CredentialEncryption:
    encryption = getattr(request.app.state, "encryption", None)
    if encryption is None:
        raise HTTPException(status_code=503, detail="Credential encryption unavailable")
    return encryption
