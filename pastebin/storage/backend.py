"""
Abstract backend interface for paste storage.

This module defines the interface that all paste storage backends must implement,
allowing for pluggable storage strategies (in-memory, Redis, ...).
Backends know nothing about expiry policy: they store and return whatever
they are given, and only expose an index of expiry instants for reclamation.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterator, Optional

from pastebin.models import Paste, PasteMetadata


class PasteStorageBackend(ABC):
    """Abstract base class for paste storage backends."""

    @abstractmethod
    def insert_if_absent(self, paste_id: str, metadata: PasteMetadata, payload: bytes) -> bool:
        """
        Atomically store a paste unless the id is taken or retired.

        The record must become visible all at once: metadata and payload
        together, or nothing.
        An id is retired once its paste has been deleted; retired ids are
        refused forever so a stale link never resolves to someone else's paste.

        Args:
            paste_id: Identifier to reserve
            metadata: The paste's metadata
            payload: The paste's data

        Returns:
            True if stored, False if a paste with this id already exists or
            the id is retired (existing data is left untouched)

        Raises:
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    def get(self, paste_id: str) -> Optional[Paste]:
        """
        Retrieve a paste, expired or not.

        Args:
            paste_id: Unique paste identifier

        Returns:
            The paste if present, None otherwise

        Raises:
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    def delete(self, paste_id: str) -> bool:
        """
        Delete a paste and retire its id.

        Args:
            paste_id: Unique paste identifier

        Returns:
            True if the paste existed and was deleted, False otherwise

        Raises:
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    def scan_expired(self, now: datetime) -> Iterator[str]:
        """
        Lazily yield ids of pastes with a concrete expiry at or before ``now``.

        Pastes that never expire are never yielded. Each call starts a fresh scan.

        Raises:
            StorageError: If the backend fails
        """
        pass

    def ping(self) -> bool:
        """Health check."""
        return True

    def close(self) -> None:
        """Release any held connections."""
        pass
