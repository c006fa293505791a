"""
Pastebin - Main FastAPI application.
"""
import logging
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pastebin.config import Settings, settings as default_settings
from pastebin.errors import (
    IdentifierSpaceExhausted,
    InvalidExpiry,
    NotFound,
    PayloadTooLarge,
    StorageError,
)
from pastebin.ids import BASE62_ALPHABET, IdGenerator
from pastebin.routes import health, pastes
from pastebin.storage.backend import PasteStorageBackend
from pastebin.storage.factory import create_backend
from pastebin.store import PasteStore
from pastebin.sweeper import ReclamationSweeper

# Configure logging
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    PayloadTooLarge: 413,
    InvalidExpiry: 400,
    NotFound: 404,
    StorageError: 500,
    IdentifierSpaceExhausted: 500,
}


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def create_app(
    settings: Settings = default_settings,
    backend: Optional[PasteStorageBackend] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings
        backend: Storage backend; built from settings when omitted

    Returns:
        Configured FastAPI app with the paste store on ``app.state.store``
    """
    if backend is None:
        backend = create_backend(settings)

    store = PasteStore(
        backend,
        IdGenerator(length=settings.ID_LENGTH, alphabet=settings.ID_ALPHABET or BASE62_ALPHABET),
        default_ttl=timedelta(seconds=settings.DEFAULT_TTL_SECONDS),
        max_paste_size=settings.MAX_PASTE_SIZE,
        max_id_attempts=settings.ID_MAX_ATTEMPTS,
    )
    sweeper = ReclamationSweeper(backend, interval=settings.SWEEP_INTERVAL_SECONDS)

    app = FastAPI(
        title="Pastebin",
        description="A pastebin for sharing text and files",
        version="1.0.0",
        debug=settings.DEBUG,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.sweeper = sweeper

    # Add CORS middleware (optional, for cross-origin requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for error_type, status_code in ERROR_STATUS.items():
        app.add_exception_handler(error_type, _error_handler(status_code))

    # Health first: its two-segment path would otherwise match /{paste_id}/{file_name}
    app.include_router(health.router)
    app.include_router(pastes.router)

    @app.on_event("startup")
    async def startup_event():
        """Startup event handler."""
        logger.info("Pastebin application starting...")
        logger.info(f"DATABASE: using {type(backend).__name__}")
        sweeper.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Shutdown event handler."""
        logger.info("Pastebin application shutting down...")
        await sweeper.stop()
        backend.close()

    return app


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "pastebin.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
    )


app = create_app()


if __name__ == "__main__":
    run()
