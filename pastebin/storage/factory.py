"""
Backend selection from settings.
"""
import logging

from pastebin.config import Settings
from pastebin.errors import StorageError
from pastebin.storage.backend import PasteStorageBackend
from pastebin.storage.memory_backend import MemoryPasteBackend
from pastebin.storage.redis_backend import RedisPasteBackend

logger = logging.getLogger(__name__)


def create_backend(settings: Settings) -> PasteStorageBackend:
    """
    Build the storage backend described by the settings.

    Uses Redis when REDIS_URL is set, in-memory storage otherwise. In DEBUG
    mode an unreachable Redis falls back to memory; outside it the error is raised.
    """
    if not settings.REDIS_URL:
        logger.warning("REDIS_URL not set, using in-memory storage. Data will NOT persist across restarts.")
        return MemoryPasteBackend()

    try:
        logger.info(f"Attempting to connect to Redis: {settings.REDIS_URL[:30]}...")
        return RedisPasteBackend(settings.REDIS_URL, key_prefix=settings.REDIS_KEY_PREFIX)
    except StorageError as e:
        if not settings.DEBUG:
            raise
        logger.error(f"❌ Error connecting to Redis: {e}")
        logger.warning("Using in-memory fallback for development. Data will NOT persist across restarts.")
        return MemoryPasteBackend()
