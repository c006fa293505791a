"""
Paste store: create, read and delete pastes on top of a storage backend.
Handles identifier allocation, content type and expiry resolution, and
hides expired pastes from readers.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pastebin import expiry
from pastebin.errors import IdentifierSpaceExhausted, NotFound, PayloadTooLarge, StorageError
from pastebin.expiry import ExpiresAt
from pastebin.ids import IdGenerator
from pastebin.mime import resolve_content_type
from pastebin.models import Paste, PasteMetadata
from pastebin.storage.backend import PasteStorageBackend

logger = logging.getLogger(__name__)


class PasteStore:
    """Orchestrates paste lifecycle operations over a PasteStorageBackend."""

    def __init__(
        self,
        backend: PasteStorageBackend,
        id_generator: IdGenerator,
        default_ttl: timedelta,
        max_paste_size: int,
        max_id_attempts: int = 8,
        clock: Callable[[], datetime] = expiry.utcnow,
    ):
        if max_id_attempts < 1:
            raise ValueError("max_id_attempts must be >= 1")
        self.backend = backend
        self.id_generator = id_generator
        self.default_ttl = default_ttl
        self.max_paste_size = max_paste_size
        self.max_id_attempts = max_id_attempts
        self._clock = clock

    def create(
        self,
        payload: bytes,
        content_type_hint: Optional[str] = None,
        file_name: Optional[str] = None,
        expiry_request: Optional[ExpiresAt] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Store a new paste.

        Args:
            payload: Paste data
            content_type_hint: Client-supplied MIME type, used if well formed
            file_name: Optional suggested file name
            expiry_request: None for the server default, NEVER, or a concrete instant
            now: Creation instant, defaults to the store's clock

        Returns:
            The new paste's identifier

        Raises:
            PayloadTooLarge: If the payload exceeds the size ceiling
            InvalidExpiry: If a concrete expiry is not in the future
            IdentifierSpaceExhausted: If every attempted id was already taken
            StorageError: If the backend fails
        """
        if len(payload) > self.max_paste_size:
            raise PayloadTooLarge(len(payload), self.max_paste_size)

        now = now or self._clock()
        content_type = resolve_content_type(content_type_hint, file_name, payload)
        expires_at = expiry.resolve(expiry_request, self.default_ttl, now)
        metadata = PasteMetadata.build(content_type, file_name, now, expires_at)

        for attempt in range(1, self.max_id_attempts + 1):
            paste_id = self.id_generator.generate()
            if self.backend.insert_if_absent(paste_id, metadata, payload):
                logger.info(f"Paste {paste_id} created ({len(payload)} bytes, {content_type}, expires {expires_at})")
                return paste_id
            logger.debug(f"Paste id {paste_id} already taken (attempt {attempt}/{self.max_id_attempts})")

        logger.error(
            f"Identifier space exhausted after {self.max_id_attempts} attempts; "
            f"id length {self.id_generator.length} is too small for the load"
        )
        raise IdentifierSpaceExhausted(self.max_id_attempts)

    def read(self, paste_id: str, now: Optional[datetime] = None) -> Paste:
        """
        Fetch a paste that has not expired.

        Raises:
            NotFound: If the paste does not exist or has expired
            StorageError: If the backend fails
        """
        paste = self.backend.get(paste_id)
        if paste is None:
            logger.debug(f"Paste {paste_id} not found")
            raise NotFound(paste_id)

        now = now or self._clock()
        if expiry.is_expired(paste.metadata.expiry, now):
            logger.info(f"Paste {paste_id} has expired")
            self._discard(paste_id)
            raise NotFound(paste_id)

        return paste

    def get_file_name(self, paste_id: str, now: Optional[datetime] = None) -> Optional[str]:
        """File name of a readable paste, if it has one."""
        return self.read(paste_id, now).metadata.file_name

    def delete(self, paste_id: str) -> None:
        """
        Delete a paste, expired or not.

        Raises:
            NotFound: If there was nothing to delete
            StorageError: If the backend fails
        """
        if not self.backend.delete(paste_id):
            raise NotFound(paste_id)
        logger.info(f"Paste {paste_id} deleted")

    def _discard(self, paste_id: str) -> None:
        # Runs inline, so the caller waits on this delete before seeing NotFound.
        # A failed delete is only logged; the sweeper removes the paste later.
        try:
            self.backend.delete(paste_id)
        except StorageError as e:
            logger.warning(f"Could not remove expired paste {paste_id}: {e}")
