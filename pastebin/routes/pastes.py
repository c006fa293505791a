"""
Paste routes.
Handles create, fetch (raw or HTML) and delete operations.
"""
import html
import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from pastebin.config import Settings
from pastebin.errors import NotFound, PayloadTooLarge
from pastebin.expiry import parse_expiry
from pastebin.ids import is_valid_id
from pastebin.mime import is_text
from pastebin.models import Paste
from pastebin.store import PasteStore

router = APIRouter()
logger = logging.getLogger(__name__)

BROWSER_MARKERS = ("Gecko/", "AppleWebKit/", "Opera/", "Trident/", "Chrome/")


def get_store(request: Request) -> PasteStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def is_browser(user_agent: Optional[str]) -> bool:
    """Tell a web browser apart from command line clients like curl or wget."""
    if not user_agent:
        return False
    return any(marker in user_agent for marker in BROWSER_MARKERS)


def _get_current_time(settings: Settings, x_test_now_ms: Optional[str] = None) -> Optional[datetime]:
    """
    Get the instant a read is evaluated at, respecting TEST_MODE for deterministic testing.

    Args:
        settings: Application settings
        x_test_now_ms: Test timestamp header (milliseconds since epoch)

    Returns:
        The overridden instant, or None to use the store's clock
    """
    if settings.TEST_MODE and x_test_now_ms:
        try:
            # Convert milliseconds to seconds
            timestamp_ms = int(x_test_now_ms)
            return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
        except (ValueError, TypeError, OverflowError) as e:
            logger.warning(f"Invalid x-test-now-ms header: {e}")

    return None


def _check_id(paste_id: str) -> None:
    if not is_valid_id(paste_id):
        raise NotFound(paste_id)


@router.get("/", response_class=PlainTextResponse)
def usage(request: Request) -> str:
    """Short usage note for command line clients."""
    prefix = get_settings(request).url_prefix
    return (
        "Pastebin\n\n"
        f"  upload:    curl --data-binary @file {prefix}[file_name][?expires=<unix time>|never]\n"
        f"  download:  curl {prefix}<id>\n"
        f"  delete:    curl -X DELETE {prefix}<id>\n"
    )


async def _create(request: Request, file_name: Optional[str], expires: Optional[str]) -> PlainTextResponse:
    store = get_store(request)

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > store.max_paste_size:
        raise PayloadTooLarge(int(content_length), store.max_paste_size)

    # Chunked uploads carry no Content-Length, so count while reading.
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > store.max_paste_size:
            raise PayloadTooLarge(received, store.max_paste_size)
        chunks.append(chunk)
    payload = b"".join(chunks)

    expiry_request = parse_expiry(expires)
    paste_id = await run_in_threadpool(
        store.create,
        payload,
        content_type_hint=request.headers.get("content-type"),
        file_name=file_name,
        expiry_request=expiry_request,
    )

    url = f"{get_settings(request).url_prefix}{paste_id}\n"
    return PlainTextResponse(url, status_code=201)


@router.api_route("/", methods=["POST", "PUT"], status_code=201)
async def create_paste(request: Request, expires: Optional[str] = Query(None)) -> PlainTextResponse:
    """
    Create a new paste from the raw request body.

    Raises:
        PayloadTooLarge: If the body exceeds the size ceiling (413)
        InvalidExpiry: If ``expires`` is malformed or in the past (400)
    """
    return await _create(request, None, expires)


@router.api_route("/{file_name}", methods=["POST", "PUT"], status_code=201)
async def create_named_paste(
    file_name: str,
    request: Request,
    expires: Optional[str] = Query(None),
) -> PlainTextResponse:
    """Create a new paste with a suggested file name."""
    return await _create(request, file_name, expires)


@router.get("/{paste_id}")
def fetch_paste(
    paste_id: str,
    request: Request,
    user_agent: Optional[str] = Header(None),
    x_test_now_ms: Optional[str] = Header(None),
) -> Response:
    """
    Fetch a paste. Pastes with a file name are redirected to ``/<id>/<file_name>``.

    Raises:
        NotFound: If the paste does not exist or has expired (404)
    """
    store = get_store(request)
    _check_id(paste_id)
    now = _get_current_time(get_settings(request), x_test_now_ms)

    paste = store.read(paste_id, now)
    if paste.metadata.file_name:
        return RedirectResponse(f"/{paste_id}/{quote(paste.metadata.file_name)}", status_code=301)
    return _render(paste, is_browser(user_agent))


@router.get("/{paste_id}/{file_name}")
def fetch_named_paste(
    paste_id: str,
    file_name: str,
    request: Request,
    user_agent: Optional[str] = Header(None),
    x_test_now_ms: Optional[str] = Header(None),
) -> Response:
    """Fetch a paste; the file name segment is cosmetic."""
    store = get_store(request)
    _check_id(paste_id)
    now = _get_current_time(get_settings(request), x_test_now_ms)
    return _render(store.read(paste_id, now), is_browser(user_agent))


@router.delete("/{paste_id}", response_class=PlainTextResponse)
def delete_paste(paste_id: str, request: Request) -> str:
    """
    Delete a paste.

    Raises:
        NotFound: If there is nothing to delete (404)
    """
    store = get_store(request)
    _check_id(paste_id)
    store.delete(paste_id)
    return ""


def _render(paste: Paste, browser: bool) -> Response:
    metadata = paste.metadata
    if browser and is_text(metadata.content_type):
        return HTMLResponse(_render_paste_page(paste))

    headers = {}
    if metadata.file_name:
        headers["Content-Disposition"] = f"inline; filename*=UTF-8''{quote(metadata.file_name)}"
    return Response(content=paste.payload, media_type=metadata.content_type, headers=headers)


def _render_paste_page(paste: Paste) -> str:
    """Render a text paste as a minimal HTML page."""
    metadata = paste.metadata
    title = html.escape(metadata.file_name or paste.id)
    content = html.escape(paste.payload.decode("utf-8", errors="replace"))
    raw_link = f"/{paste.id}/{quote(metadata.file_name)}" if metadata.file_name else f"/{paste.id}"

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title} - Pastebin</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
            margin: 20px;
        }}
        .meta {{
            color: #666;
            font-size: 12px;
            margin-bottom: 10px;
            font-family: monospace;
        }}
        pre {{
            background: #f5f5f5;
            border: 1px solid #ddd;
            border-radius: 5px;
            padding: 20px;
            white-space: pre-wrap;
            word-wrap: break-word;
        }}
    </style>
</head>
<body>
    <div class="meta">{title} &middot; {html.escape(metadata.content_type)} &middot; <a href="{html.escape(raw_link)}" download>download</a></div>
    <pre>{content}</pre>
</body>
</html>"""
