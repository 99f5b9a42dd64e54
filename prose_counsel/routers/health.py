"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends

from prose_counsel.core.config import Settings, get_settings
from prose_counsel.core.utc import utc_now_iso

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "timestamp": utc_now_iso(),
        "version": settings.app_version,
        "aiConfigured": settings.ai_configured,
    }
