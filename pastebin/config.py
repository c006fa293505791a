"""
Configuration module for Pastebin.
Loads environment variables and provides config objects.
"""
import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    REDIS_URL: Optional[str] = os.getenv("REDIS_URL") or None
    REDIS_KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "pastebin:")
    DEBUG: bool = _env_bool("DEBUG", "False")
    URL_PREFIX: str = os.getenv("URL_PREFIX", os.getenv("APP_DOMAIN", "http://localhost:8000/"))
    TEST_MODE: bool = _env_bool("TEST_MODE", "0")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    DEFAULT_TTL_SECONDS: int = int(os.getenv("DEFAULT_TTL_SECONDS", str(7 * 24 * 60 * 60)))
    MAX_PASTE_SIZE: int = int(os.getenv("MAX_PASTE_SIZE", str(15 * 1024 * 1024)))
    SWEEP_INTERVAL_SECONDS: float = float(os.getenv("SWEEP_INTERVAL_SECONDS", "300"))
    ID_LENGTH: int = int(os.getenv("ID_LENGTH", "12"))
    ID_ALPHABET: Optional[str] = os.getenv("ID_ALPHABET") or None
    ID_MAX_ATTEMPTS: int = int(os.getenv("ID_MAX_ATTEMPTS", "8"))

    @property
    def url_prefix(self) -> str:
        """Link prefix, always ending with a slash."""
        return self.URL_PREFIX.rstrip("/") + "/"


settings = Settings()
