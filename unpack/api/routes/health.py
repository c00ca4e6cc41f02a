from fastapi import APIRouter

from unpack.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Simple health endpoint for monitoring."""
    return {
        "status": "healthy",
        "store_backend": settings.STORE_BACKEND,
        "responder_mode": settings.RESPONDER_MODE,
    }
