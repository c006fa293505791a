# tests/conftest.py
"""Shared fixtures: a fixed clock, an in-memory backend and a store over it."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List

import pytest

from pastebin.ids import IdGenerator
from pastebin.storage.memory_backend import MemoryPasteBackend
from pastebin.store import PasteStore

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
DEFAULT_TTL = timedelta(days=7)
MAX_SIZE = 1024


class ScriptedIdGenerator(IdGenerator):
    """Hands out a fixed sequence of ids, to force collisions."""

    def __init__(self, ids: Iterable[str]):
        super().__init__(length=10)
        self._ids = iter(ids)
        self.calls: List[str] = []

    def generate(self) -> str:
        paste_id = next(self._ids)
        self.calls.append(paste_id)
        return paste_id


@pytest.fixture
def backend() -> MemoryPasteBackend:
    return MemoryPasteBackend()


@pytest.fixture
def store(backend: MemoryPasteBackend) -> PasteStore:
    return PasteStore(
        backend,
        IdGenerator(length=12),
        default_ttl=DEFAULT_TTL,
        max_paste_size=MAX_SIZE,
        clock=lambda: NOW,
    )
