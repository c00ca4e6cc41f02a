import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

_OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
_OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o')

# remote | heuristic | auto
_RESPONDER_MODE = os.getenv('RESPONDER_MODE', 'auto').strip().lower()

_REMOTE_CALL_TIMEOUT_SECONDS = float(os.getenv('REMOTE_CALL_TIMEOUT_SECONDS', '20'))
_MANUAL_REVIEW_THRESHOLD = float(os.getenv('MANUAL_REVIEW_THRESHOLD', '0.6'))

_SUPABASE_URL = os.getenv('SUPABASE_URL')
_SUPABASE_KEY = os.getenv('SUPABASE_KEY')

# supabase | memory
_STORE_BACKEND = os.getenv('STORE_BACKEND') or ('supabase' if _SUPABASE_URL and _SUPABASE_KEY else 'memory')

_PHOTO_BUCKET = os.getenv('PHOTO_BUCKET', 'entry-photos')
_SIGNED_URL_TTL_SECONDS = int(os.getenv('SIGNED_URL_TTL_SECONDS', str(365 * 24 * 60 * 60)))


class Config:
    """Central configuration for the journal service."""

    OPENAI_API_KEY = _OPENAI_API_KEY
    OPENAI_MODEL = _OPENAI_MODEL

    RESPONDER_MODE = _RESPONDER_MODE

    REMOTE_CALL_TIMEOUT_SECONDS = _REMOTE_CALL_TIMEOUT_SECONDS
    MANUAL_REVIEW_THRESHOLD = _MANUAL_REVIEW_THRESHOLD

    SUPABASE_URL = _SUPABASE_URL
    SUPABASE_KEY = _SUPABASE_KEY
    STORE_BACKEND = _STORE_BACKEND

    PHOTO_BUCKET = _PHOTO_BUCKET
    SIGNED_URL_TTL_SECONDS = _SIGNED_URL_TTL_SECONDS

    @property
    def has_real_openai_key(self) -> bool:
        """True when the configured key looks like a usable OpenAI key."""
        key = self.OPENAI_API_KEY
        return bool(key) and 'placeholder' not in key and key.startswith('sk-')


settings = Config()
