"""
Photo API Routes

Page photos are uploaded one at a time; the returned key goes into the
entry's photo_refs and the signed URL can be handed to /capture/extract.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from unpack.api.dependencies import get_owner_id, get_storage
from unpack.api.models import PhotoUploadResponse
from unpack.services.storage import ALLOWED_CONTENT_TYPES, PhotoStorage
from unpack.shared.errors import InvalidInput

router = APIRouter(tags=["Photos"])
logger = logging.getLogger("Unpack.API.Photos")


@router.post("/photos", response_model=PhotoUploadResponse)
async def upload_photo(
    file: UploadFile = File(...),
    owner_id: str = Depends(get_owner_id),
    storage: PhotoStorage = Depends(get_storage),
):
    """Store one page photo and return its key and a signed URL."""
    content_type = file.content_type or "image/jpeg"
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidInput(f"Unsupported image type: {content_type}")

    data = await file.read()
    if not data:
        raise InvalidInput("The uploaded photo is empty")

    key = storage.upload(data, content_type)
    logger.info(f"Photo uploaded by {owner_id}: {key}")
    return PhotoUploadResponse(key=key, url=storage.signed_url(key))
