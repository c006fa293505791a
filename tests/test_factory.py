"""Tests for backend selection."""

import pytest

from pastebin.config import Settings
from pastebin.errors import StorageError
from pastebin.storage.factory import create_backend
from pastebin.storage.memory_backend import MemoryPasteBackend

UNREACHABLE_REDIS = "redis://localhost:1/0"


def test_memory_without_redis_url() -> None:
    settings = Settings()
    settings.REDIS_URL = None
    assert isinstance(create_backend(settings), MemoryPasteBackend)


def test_unreachable_redis_falls_back_in_debug() -> None:
    settings = Settings()
    settings.REDIS_URL = UNREACHABLE_REDIS
    settings.DEBUG = True
    assert isinstance(create_backend(settings), MemoryPasteBackend)


def test_unreachable_redis_is_fatal_outside_debug() -> None:
    settings = Settings()
    settings.REDIS_URL = UNREACHABLE_REDIS
    settings.DEBUG = False
    with pytest.raises(StorageError):
        create_backend(settings)
