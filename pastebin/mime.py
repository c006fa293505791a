"""
Content type helpers.
"""
import mimetypes
import re
from typing import Optional

DEFAULT_TEXT_TYPE = "text/plain; charset=utf-8"
DEFAULT_BINARY_TYPE = "application/octet-stream"

_MIME_RE = re.compile(r"^[A-Za-z0-9][\w.+-]*/[A-Za-z0-9][\w.+-]*(\s*;\s*[\w.+-]+=[^;]+)*$")

# Clients like curl send this for any -d upload; it says nothing about the payload.
_IGNORED_HINTS = {"application/x-www-form-urlencoded", "multipart/form-data"}

_TEXTUAL_APPLICATION_TYPES = {"application/x-sh", "application/json", "application/xml", "application/javascript"}


def is_well_formed(content_type: str) -> bool:
    return bool(_MIME_RE.match(content_type.strip()))


def is_text(content_type: str) -> bool:
    """Check whether a content type represents something printable."""
    base = content_type.split(";", 1)[0].strip().lower()
    return base.startswith("text/") or base in _TEXTUAL_APPLICATION_TYPES


def guess_from_file_name(file_name: Optional[str]) -> Optional[str]:
    if not file_name:
        return None
    guessed, _ = mimetypes.guess_type(file_name, strict=False)
    return guessed


def resolve_content_type(hint: Optional[str], file_name: Optional[str], payload: bytes) -> str:
    """
    Pick the content type stored with a paste.

    The hint wins when it is well formed, then the file name extension,
    then a sniff of the payload: valid UTF-8 is text, anything else binary.
    """
    if hint:
        hint = hint.strip()
        base = hint.split(";", 1)[0].strip().lower()
        if base not in _IGNORED_HINTS and is_well_formed(hint):
            return hint

    guessed = guess_from_file_name(file_name)
    if guessed:
        return guessed

    try:
        payload.decode("utf-8")
    except UnicodeDecodeError:
        return DEFAULT_BINARY_TYPE
    return DEFAULT_TEXT_TYPE
