"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request) -> dict[str, str]:
    service = getattr(request.app.state, "import_service", None)
    return {
        "status": "ready" if service is not None else "starting",
        "backend": request.app.state.settings.backend,
    }
