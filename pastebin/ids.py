"""
Short, URL-safe paste identifiers.
"""
import secrets
import string

BASE62_ALPHABET = string.ascii_letters + string.digits
URL_SAFE_CHARACTERS = frozenset(BASE62_ALPHABET + "-_")

MIN_ID_LENGTH = 10
MAX_ID_LENGTH = 64


class IdGenerator:
    """
    Random identifier generator.

    Identifiers are drawn with ``secrets`` so they cannot be guessed from
    previous ones. Uniqueness is NOT guaranteed here: callers reserve the id
    through the storage backend's insert-if-absent and retry on conflict.
    """

    def __init__(self, length: int = 12, alphabet: str = BASE62_ALPHABET):
        if length < MIN_ID_LENGTH:
            raise ValueError(f"Identifier length must be at least {MIN_ID_LENGTH}, got {length}")
        if length > MAX_ID_LENGTH:
            raise ValueError(f"Identifier length must be at most {MAX_ID_LENGTH}, got {length}")
        if len(set(alphabet)) < 2:
            raise ValueError("Identifier alphabet needs at least two distinct characters")
        if not set(alphabet) <= URL_SAFE_CHARACTERS:
            raise ValueError(f"Identifier alphabet is not URL-safe: {alphabet!r}")

        self.length = length
        self.alphabet = alphabet

    def generate(self) -> str:
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))


def is_valid_id(paste_id: str) -> bool:
    """
    Check that a string is shaped like a paste id.

    Ids are not checked against the current generator settings, so pastes
    created under an older length or alphabet stay reachable.
    """
    return 0 < len(paste_id) <= MAX_ID_LENGTH and all(c in URL_SAFE_CHARACTERS for c in paste_id)
