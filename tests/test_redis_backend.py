"""
Tests for RedisPasteBackend.

These tests require a running Redis server at TEST_REDIS_URL
(default redis://localhost:6379/15) and are skipped otherwise.
"""

import os
from datetime import timedelta
from typing import Iterator, Optional

import pytest
import redis

from pastebin.errors import StorageError
from pastebin.ids import IdGenerator
from pastebin.models import PasteMetadata
from pastebin.storage.redis_backend import RedisPasteBackend
from pastebin.store import PasteStore
from pastebin.sweeper import ReclamationSweeper

from conftest import NOW

REDIS_URL = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")
KEY_PREFIX = "test:pastebin:"


def _redis_available() -> bool:
    try:
        return bool(redis.Redis.from_url(REDIS_URL, socket_connect_timeout=0.5).ping())
    except redis.RedisError:
        return False


pytestmark = pytest.mark.skipif(not _redis_available(), reason="Redis server not available")


def _clear(client: redis.Redis) -> None:
    keys = list(client.scan_iter(f"{KEY_PREFIX}*", count=1000))
    if keys:
        client.delete(*keys)


@pytest.fixture
def redis_backend() -> Iterator[RedisPasteBackend]:
    backend = RedisPasteBackend(REDIS_URL, key_prefix=KEY_PREFIX, scan_page_size=3)
    _clear(backend.client)
    yield backend
    _clear(backend.client)
    backend.close()


def _metadata(expires_in: Optional[timedelta] = timedelta(hours=1), file_name: Optional[str] = None) -> PasteMetadata:
    return PasteMetadata(
        content_type="application/octet-stream",
        file_name=file_name,
        created_at=NOW,
        expires_at=None if expires_in is None else NOW + expires_in,
    )


def test_insert_and_get(redis_backend: RedisPasteBackend) -> None:
    metadata = _metadata(file_name="blob.bin")
    payload = bytes(range(256))
    assert redis_backend.insert_if_absent("abcdefghij", metadata, payload)

    paste = redis_backend.get("abcdefghij")
    assert paste.payload == payload
    assert paste.metadata == metadata


def test_conflict_leaves_existing_record(redis_backend: RedisPasteBackend) -> None:
    assert redis_backend.insert_if_absent("abcdefghij", _metadata(), b"first")
    assert not redis_backend.insert_if_absent("abcdefghij", _metadata(None), b"second")

    assert redis_backend.get("abcdefghij").payload == b"first"
    assert list(redis_backend.scan_expired(NOW + timedelta(days=1))) == ["abcdefghij"]


def test_delete(redis_backend: RedisPasteBackend) -> None:
    redis_backend.insert_if_absent("abcdefghij", _metadata(), b"data")
    assert redis_backend.delete("abcdefghij")
    assert not redis_backend.delete("abcdefghij")
    assert redis_backend.get("abcdefghij") is None
    assert list(redis_backend.scan_expired(NOW + timedelta(days=1))) == []


def test_deleted_id_is_never_stored_again(redis_backend: RedisPasteBackend) -> None:
    redis_backend.insert_if_absent("abcdefghij", _metadata(), b"old")
    redis_backend.delete("abcdefghij")

    assert not redis_backend.insert_if_absent("abcdefghij", _metadata(), b"new")
    assert redis_backend.get("abcdefghij") is None
    assert list(redis_backend.scan_expired(NOW + timedelta(days=1))) == []


def test_deleting_unknown_id_does_not_retire_it(redis_backend: RedisPasteBackend) -> None:
    assert not redis_backend.delete("abcdefghij")
    assert redis_backend.insert_if_absent("abcdefghij", _metadata(), b"data")


def test_scan_yields_every_tied_expiry_once(redis_backend: RedisPasteBackend) -> None:
    # Seven pastes share one expiry, more than a page holds.
    tied = {f"tied{i:06d}" for i in range(7)}
    for paste_id in tied:
        redis_backend.insert_if_absent(paste_id, _metadata(timedelta(seconds=5)), b"")
    others = {f"paste{i:05d}" for i in range(4)}
    for i, paste_id in enumerate(sorted(others)):
        redis_backend.insert_if_absent(paste_id, _metadata(timedelta(seconds=i + 1)), b"")
    redis_backend.insert_if_absent("forever000", _metadata(None), b"")
    redis_backend.insert_if_absent("future0000", _metadata(timedelta(days=1)), b"")

    # Without deleting, the scan must still terminate and see every due id once.
    scanned = list(redis_backend.scan_expired(NOW + timedelta(minutes=1)))
    assert len(scanned) == len(set(scanned))
    assert set(scanned) == tied | others

    removed = ReclamationSweeper(redis_backend, interval=60).sweep(NOW + timedelta(minutes=1))
    assert removed == 11
    assert list(redis_backend.scan_expired(NOW + timedelta(minutes=1))) == []
    assert redis_backend.get("forever000") is not None
    assert redis_backend.get("future0000") is not None


def test_scan_with_only_ties(redis_backend: RedisPasteBackend) -> None:
    tied = {f"tied{i:06d}" for i in range(6)}
    for paste_id in tied:
        redis_backend.insert_if_absent(paste_id, _metadata(timedelta(seconds=5)), b"")

    scanned = list(redis_backend.scan_expired(NOW + timedelta(minutes=1)))
    assert sorted(scanned) == sorted(tied)


def test_store_over_redis(redis_backend: RedisPasteBackend) -> None:
    store = PasteStore(
        redis_backend,
        IdGenerator(),
        default_ttl=timedelta(hours=1),
        max_paste_size=1024,
        clock=lambda: NOW,
    )
    paste_id = store.create(b"hello", file_name="hello.txt")

    paste = store.read(paste_id)
    assert paste.payload == b"hello"
    assert paste.metadata.content_type == "text/plain"
    assert paste.metadata.expires_at == NOW + timedelta(hours=1)


def test_corrupt_record_is_storage_error(redis_backend: RedisPasteBackend) -> None:
    redis_backend.client.set(f"{KEY_PREFIX}paste:abcdefghij", b"\x05\x00\x00\x00{oops")
    with pytest.raises(StorageError):
        redis_backend.get("abcdefghij")


def test_unreachable_server() -> None:
    with pytest.raises(StorageError):
        RedisPasteBackend("redis://localhost:1/0")
