"""
Health check endpoint.
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from travelplan.config import settings


router = APIRouter(tags=["health"])


@router.get("/health", summary="Service health")
async def health_check() -> dict:
    """Liveness probe; does not touch the database."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
    }
