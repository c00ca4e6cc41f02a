import logging
from functools import lru_cache

from supabase import Client, create_client

from unpack.core.config import settings

logger = logging.getLogger("Unpack.Supabase")


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get the singleton Supabase client.

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_KEY is not set
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")

    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    logger.info("Supabase client initialized")
    return client
