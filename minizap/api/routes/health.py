"""Liveness endpoint."""

from fastapi import APIRouter, Request

from minizap.version import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    runtime = getattr(request.app.state, "runtime", None)
    return {
        "status": "ok" if runtime is not None else "starting",
        "version": __version__,
        "actions": runtime.registry.list_types() if runtime is not None else [],
    }
