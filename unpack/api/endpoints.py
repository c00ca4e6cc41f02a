from fastapi import APIRouter

from unpack.api.routes import capture, entries, health, photos, tangents


router = APIRouter()

router.include_router(health.router)
router.include_router(photos.router)
router.include_router(capture.router)
router.include_router(entries.router)
router.include_router(tangents.router)
