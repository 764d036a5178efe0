"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/store", status_code=status.HTTP_200_OK)
def health_store() -> dict:
    """Report whether the local route store is reachable."""
    from ...services.routing.service import get_store

    try:
        store = get_store()
        store.backend.get("__health__")
        return {"service": "store", "healthy": True, "path": str(settings.store_path)}
    except Exception as e:
        return {"service": "store", "healthy": False, "error": str(e)}
