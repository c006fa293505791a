"""
Simple in-memory paste storage backend.

This is the default backend when Redis is not configured. Data does NOT
persist across restarts.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Iterator, Optional, Set, Tuple

from pastebin.models import Paste, PasteMetadata
from pastebin.storage.backend import PasteStorageBackend

logger = logging.getLogger(__name__)


class MemoryPasteBackend(PasteStorageBackend):
    """Thread-safe in-memory paste storage backend."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pastes: Dict[str, Tuple[PasteMetadata, bytes]] = {}
        self._expiry_index: Dict[str, datetime] = {}  # paste_id -> expires_at, concrete expiries only
        self._retired: Set[str] = set()  # ids of deleted or reclaimed pastes, never handed out again

    def insert_if_absent(self, paste_id: str, metadata: PasteMetadata, payload: bytes) -> bool:
        """Store a paste in memory unless the id is taken or retired."""
        payload = bytes(payload)
        with self._lock:
            if paste_id in self._pastes or paste_id in self._retired:
                return False
            self._pastes[paste_id] = (metadata, payload)
            if metadata.expires_at is not None:
                self._expiry_index[paste_id] = metadata.expires_at

        logger.debug(f"Stored paste {paste_id} ({len(payload)} bytes)")
        return True

    def get(self, paste_id: str) -> Optional[Paste]:
        """Retrieve a paste from memory."""
        with self._lock:
            entry = self._pastes.get(paste_id)
        if entry is None:
            return None
        metadata, payload = entry
        return Paste(id=paste_id, metadata=metadata, payload=payload)

    def delete(self, paste_id: str) -> bool:
        """Delete a paste from memory."""
        with self._lock:
            if self._pastes.pop(paste_id, None) is None:
                return False
            self._expiry_index.pop(paste_id, None)
            self._retired.add(paste_id)

        logger.debug(f"Deleted paste {paste_id}")
        return True

    def scan_expired(self, now: datetime) -> Iterator[str]:
        """Yield expired ids from a snapshot taken under the lock."""
        with self._lock:
            expired = [(expires_at, paste_id) for paste_id, expires_at in self._expiry_index.items() if expires_at <= now]
        for _, paste_id in sorted(expired):
            yield paste_id

    def count(self) -> int:
        """Get number of pastes stored."""
        with self._lock:
            return len(self._pastes)
