"""
Expiry policy: turns a client's expiry request into a concrete instant
or the NEVER sentinel, and decides whether a paste has expired.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from pastebin.errors import InvalidExpiry


class _Never:
    """Marker for pastes that never expire. Not comparable to any instant."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEVER"

    def __reduce__(self):
        return (_Never, ())


NEVER = _Never()

ExpiresAt = Union[datetime, _Never]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_expiry(raw: Optional[str]) -> Optional[ExpiresAt]:
    """
    Parse the ``expires`` request parameter.

    Args:
        raw: None (not supplied), the literal "never", or a unix timestamp in seconds

    Returns:
        None, NEVER, or an aware UTC datetime

    Raises:
        InvalidExpiry: If the value is neither "never" nor an integer timestamp
    """
    if raw is None:
        return None
    value = raw.strip()
    if value == "never":
        return NEVER
    try:
        timestamp = int(value)
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise InvalidExpiry(f"Invalid expiry value: {raw!r}")


def resolve(
    requested: Optional[ExpiresAt],
    server_default: timedelta,
    now: datetime,
) -> ExpiresAt:
    """
    Resolve a requested expiry into the value stored with the paste.

    Args:
        requested: None for the server default, NEVER, or a concrete instant
        server_default: TTL applied when nothing was requested
        now: Creation instant

    Returns:
        NEVER or an aware datetime strictly after ``now``

    Raises:
        InvalidExpiry: If a concrete instant is not in the future
    """
    if requested is NEVER:
        return NEVER
    if requested is None:
        return now + server_default
    if requested.tzinfo is None:
        raise InvalidExpiry("Expiry instant must be timezone-aware")
    if requested <= now:
        raise InvalidExpiry(f"Expiry {requested.isoformat()} is not in the future")
    return requested


def is_expired(expires_at: ExpiresAt, now: datetime) -> bool:
    if expires_at is NEVER:
        return False
    return expires_at <= now
