"""
Error kinds raised by the paste storage engine.

The HTTP layer maps each of these onto a status code; see pastebin.main.
"""


class PastebinError(Exception):
    """Base class for all paste engine errors."""


class PayloadTooLarge(PastebinError):
    """Payload exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Paste of {size} bytes exceeds the limit of {limit} bytes")
        self.size = size
        self.limit = limit


class InvalidExpiry(PastebinError):
    """Expiry parameter is malformed or not in the future."""


class IdentifierSpaceExhausted(PastebinError):
    """Every generated identifier collided; the id space is too small for the load."""

    def __init__(self, attempts: int):
        super().__init__(f"Could not allocate a unique paste id after {attempts} attempts")
        self.attempts = attempts


class StorageError(PastebinError):
    """The storage backend failed to complete an operation."""


class NotFound(PastebinError):
    """Paste is absent or has expired."""

    def __init__(self, paste_id: str):
        super().__init__(f"Paste {paste_id} not found")
        self.paste_id = paste_id
