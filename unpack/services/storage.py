"""
Photo storage on Supabase Storage.

Pages are stored under `images/<uuid>.jpg` in PHOTO_BUCKET. Entries keep the
storage key; clients and the vision model get a signed URL.
"""

import logging
import uuid
from functools import lru_cache
from typing import Optional

from unpack.core.config import settings
from unpack.shared.errors import PersistenceFailure

logger = logging.getLogger("Unpack.Storage")

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/heic", "image/webp")


class PhotoStorage:
    """Upload page photos and hand out long-lived signed URLs."""

    def __init__(self, client, bucket: Optional[str] = None, url_ttl: Optional[int] = None):
        self.client = client
        self.bucket = bucket or settings.PHOTO_BUCKET
        self.url_ttl = url_ttl or settings.SIGNED_URL_TTL_SECONDS

    def upload(self, data: bytes, content_type: str = "image/jpeg") -> str:
        """
        Store one photo.

        Returns:
            Storage key, e.g. "images/3f2a....jpg"

        Raises:
            PersistenceFailure: the upload was rejected
        """
        key = f"images/{uuid.uuid4()}.jpg"
        try:
            self.client.storage.from_(self.bucket).upload(
                path=key,
                file=data,
                file_options={"content-type": content_type},
            )
        except Exception as exc:
            logger.error(f"Photo upload failed: {exc}")
            raise PersistenceFailure("Could not upload photo") from exc

        logger.info(f"Uploaded photo {key} ({len(data)} bytes)")
        return key

    def signed_url(self, key: str) -> str:
        """Signed URL for `key`, valid for SIGNED_URL_TTL_SECONDS (one year by default)."""
        try:
            result = self.client.storage.from_(self.bucket).create_signed_url(key, self.url_ttl)
        except Exception as exc:
            logger.error(f"Could not sign URL for {key}: {exc}")
            raise PersistenceFailure("Could not create photo URL", key=key) from exc

        # supabase-py has used both spellings across releases
        url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise PersistenceFailure("Could not create photo URL", key=key)
        return url


@lru_cache(maxsize=1)
def get_photo_storage() -> PhotoStorage:
    """Singleton photo storage on the configured Supabase project."""
    from unpack.core.database import get_supabase

    return PhotoStorage(get_supabase())
