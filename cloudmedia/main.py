"""
HTTP entry point for the media storage service.

create_app() builds a fresh application each time it is called, so tests
can construct one per case and swap dependencies through
app.dependency_overrides. The module-level `app` is what uvicorn serves:

    uvicorn cloudmedia.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.dependencies import reset_media_services
from .api.routes import health, media
from .config.settings import get_settings
from .core.storage import StorageError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logging.basicConfig(format=LOG_FORMAT, level=logging.INFO)

logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Media storage with optional Cloudinary and automatic local fallback.

## Workflow

1. **Upload**: `POST /api/v1/media` (requires `X-API-Key`)
   - Returns the reference to persist on your entity
2. **Render**: `GET /api/v1/media/url` or `GET /api/v1/media/variants`
3. **Clean up**: `DELETE /api/v1/media?reference=...` (requires `X-API-Key`)
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Apply the configured log level on startup; drop shared services on shutdown."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "Cloudmedia API starting",
        extra={
            "version": __version__,
            "default_disk": settings.filesystem_disk,
            "cloudinary_enabled": settings.cloudinary_enabled,
            "cloudinary_mock_mode": settings.cloudinary_mock_mode,
        }
    )

    incomplete = settings.validate_required_fields()
    if incomplete:
        # Uploads still work through the default disk
        logger.warning(
            "Storage configuration is incomplete",
            extra={"missing_fields": incomplete}
        )

    yield

    reset_media_services()
    logger.info("Cloudmedia API stopped")


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(
            "Storage backend error",
            extra={"path": request.url.path, "error": exc.message, "details": exc.details},
        )
        return JSONResponse(status_code=502, content={"detail": "Storage backend unavailable."})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # Full error in the log, nothing internal in the response
        logger.error(
            "Unhandled exception",
            extra={"path": request.url.path, "method": request.method, "error": str(exc)},
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error."})


def create_app() -> FastAPI:
    """Build the FastAPI application from the current settings."""
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description=API_DESCRIPTION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(media.router, prefix=f"/api/{settings.api_version}/media", tags=["Media"])

    @app.get("/", include_in_schema=False)
    async def index():
        return {
            "service": settings.api_title,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "storage": "/health/storage",
        }

    _register_error_handlers(app)

    logger.debug("Application created", extra={"api_version": settings.api_version})
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "cloudmedia.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
