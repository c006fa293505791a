"""
Redis-based paste storage backend.

Layout:
- ``<prefix>paste:<id>`` holds one serialized record per paste:
  [metadata_len (4 bytes)] [metadata JSON] [payload]
- ``<prefix>expiry`` is a sorted set of paste ids scored by their expiry
  unix timestamp. Pastes that never expire are not in it.
- ``<prefix>gone:<id>`` marks an id whose paste was deleted or reclaimed.
  Retired ids are never stored again, so an old link cannot resolve to new content.

Storing metadata and payload under a single key means a record is either
fully visible or not visible at all.
"""

import logging
import struct
from datetime import datetime
from typing import Iterator, List, Optional, Set, Tuple

from pydantic import ValidationError
from redis import Redis
from redis.exceptions import RedisError

from pastebin.errors import StorageError
from pastebin.models import Paste, PasteMetadata
from pastebin.storage.backend import PasteStorageBackend

logger = logging.getLogger(__name__)

# KEYS[1] = paste key, KEYS[2] = expiry index, KEYS[3] = tombstone key
# ARGV[1] = record, ARGV[2] = expiry score or "", ARGV[3] = paste id
_INSERT_IF_ABSENT = """
if redis.call('EXISTS', KEYS[3]) == 1 then
    return 0
end
if redis.call('SET', KEYS[1], ARGV[1], 'NX') then
    if ARGV[2] ~= '' then
        redis.call('ZADD', KEYS[2], ARGV[2], ARGV[3])
    end
    return 1
end
return 0
"""

# KEYS[1] = paste key, KEYS[2] = expiry index, KEYS[3] = tombstone key
# ARGV[1] = paste id
_DELETE = """
local deleted = redis.call('DEL', KEYS[1])
redis.call('ZREM', KEYS[2], ARGV[1])
if deleted == 1 then
    redis.call('SET', KEYS[3], 1)
end
return deleted
"""


class RedisPasteBackend(PasteStorageBackend):
    """
    Redis-based paste storage backend.

    Atomicity comes from Redis itself: inserts run as a single Lua script
    (tombstone check, SET NX, index update) and so do deletes (DEL, index
    removal, tombstone).
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "pastebin:",
        scan_page_size: int = 500,
        client: Optional[Redis] = None,
    ):
        """
        Initialize Redis backend.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
            key_prefix: Prefix for all Redis keys (default: "pastebin:")
            scan_page_size: Number of expired ids fetched per round trip while scanning
            client: Pre-built Redis client; ``redis_url`` is ignored when given

        Raises:
            StorageError: If unable to connect to Redis
        """
        self.key_prefix = key_prefix
        self.scan_page_size = scan_page_size
        self._index_key = f"{key_prefix}expiry"

        # We work with bytes
        self.client = client if client is not None else Redis.from_url(redis_url, decode_responses=False)

        try:
            self.client.ping()
            logger.info(f"RedisPasteBackend: Connected to Redis at {redis_url[:30]}...")
        except RedisError as e:
            raise StorageError(f"Failed to connect to Redis at {redis_url}: {e}") from e

        self._insert_script = self.client.register_script(_INSERT_IF_ABSENT)
        self._delete_script = self.client.register_script(_DELETE)

    def _make_key(self, paste_id: str) -> str:
        return f"{self.key_prefix}paste:{paste_id}"

    def _make_tombstone_key(self, paste_id: str) -> str:
        return f"{self.key_prefix}gone:{paste_id}"

    def _keys(self, paste_id: str) -> List[str]:
        return [self._make_key(paste_id), self._index_key, self._make_tombstone_key(paste_id)]

    @staticmethod
    def _serialize(metadata: PasteMetadata, payload: bytes) -> bytes:
        encoded = metadata.model_dump_json().encode()
        return struct.pack("<I", len(encoded)) + encoded + payload

    @staticmethod
    def _deserialize(value: bytes) -> Tuple[PasteMetadata, bytes]:
        metadata_len = struct.unpack("<I", value[:4])[0]
        metadata = PasteMetadata.model_validate_json(value[4 : 4 + metadata_len])
        return metadata, value[4 + metadata_len :]

    def insert_if_absent(self, paste_id: str, metadata: PasteMetadata, payload: bytes) -> bool:
        score = "" if metadata.expires_at is None else repr(metadata.expires_at.timestamp())
        try:
            stored = self._insert_script(
                keys=self._keys(paste_id),
                args=[self._serialize(metadata, payload), score, paste_id],
            )
        except RedisError as e:
            raise StorageError(f"Failed to store paste {paste_id} in Redis: {e}") from e

        if stored:
            logger.debug(f"Stored paste {paste_id} ({len(payload)} bytes) in Redis")
        return bool(stored)

    def get(self, paste_id: str) -> Optional[Paste]:
        try:
            value = self.client.get(self._make_key(paste_id))
        except RedisError as e:
            raise StorageError(f"Failed to retrieve paste {paste_id} from Redis: {e}") from e

        if value is None:
            return None

        try:
            metadata, payload = self._deserialize(value)
        except (struct.error, ValidationError) as e:
            raise StorageError(f"Corrupt record for paste {paste_id}: {e}") from e
        return Paste(id=paste_id, metadata=metadata, payload=payload)

    def delete(self, paste_id: str) -> bool:
        try:
            deleted = self._delete_script(keys=self._keys(paste_id), args=[paste_id])
        except RedisError as e:
            raise StorageError(f"Failed to delete paste {paste_id} from Redis: {e}") from e

        if deleted:
            logger.debug(f"Deleted paste {paste_id} from Redis")
        return deleted > 0

    def _expired_page(self, lower: str, upper: float, count: int) -> List[Tuple[bytes, float]]:
        try:
            return self.client.zrangebyscore(self._index_key, lower, upper, start=0, num=count, withscores=True)
        except RedisError as e:
            raise StorageError(f"Failed to scan expired pastes in Redis: {e}") from e

    def scan_expired(self, now: datetime) -> Iterator[str]:
        """
        Page through the expiry index up to ``now``.

        The cursor is a (score, members) pair: each page starts at the last
        score seen, inclusive, and skips the members already yielded at that
        score. Callers may delete what they are given or leave it in place;
        either way every expired id is yielded once, however many share a score.
        """
        upper = now.timestamp()
        cursor_score: Optional[float] = None
        yielded_at_cursor: Set[bytes] = set()
        while True:
            lower = "-inf" if cursor_score is None else repr(cursor_score)
            requested = self.scan_page_size + len(yielded_at_cursor)
            page = self._expired_page(lower, upper, requested)

            for member, _ in page:
                if member not in yielded_at_cursor:
                    yield member.decode()

            if len(page) < requested:
                return
            last_score = page[-1][1]
            at_last = {member for member, score in page if score == last_score}
            if last_score == cursor_score:
                yielded_at_cursor |= at_last
            else:
                cursor_score = last_score
                yielded_at_cursor = at_last

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except RedisError as e:
            logger.error(f"Health check failed: {e}")
            return False

    def close(self) -> None:
        """Close the Redis connection."""
        try:
            self.client.close()
            logger.debug("Closed Redis connection")
        except RedisError as e:
            logger.error(f"Failed to close Redis connection: {e}")
