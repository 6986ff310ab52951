from datetime import datetime, timezone
from fastapi import APIRouter

from relayrooms.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Application health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc),
        "cache_backend": settings.cache_backend,
        "authenticated": bool(settings.author_pubkey),
        "service": "relayrooms"
    }
