"""
FastAPI application entry point.
Sets up the API with lifespan events for storage client initialization.
"""
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.config import settings
from app.api.router import api_router, root_router
from app.api.uploads import FILE_FIELDS, SOURCE_BY_PATH
from app.exceptions import MissingFile, PayloadTooLarge, UploadError
from app.middleware.access_gate import AccessGateMiddleware, PrivateNetworkClassifier, PROTECTED_PREFIXES
from app.middleware.metrics_middleware import MetricsMiddleware
from app.middleware.size_limit import BodySizeLimitMiddleware, BodyTooLarge, request_ceiling
from app.storage.s3_client import get_storage_client
from app.utils.logging import configure_logging, log_upload_rejected
from app.utils.metrics import uploads_total

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Configure logging and build the shared storage client
    - Shutdown: Nothing to release
    """
    configure_logging('photo-relay', settings.log_level)

    storage = get_storage_client()
    if not storage.is_configured:
        logger.error(
            "Object storage is not configured; every upload will fail",
            extra={"event": "storage_unconfigured", "container": settings.storage_container}
        )
        # Refuse to serve in production without a backend
        if settings.environment == "production":
            raise RuntimeError("Object storage credentials are required in production")

    yield


app = FastAPI(
    title="Photo Relay API",
    description="Relays photo and document uploads to S3-compatible object storage",
    version=VERSION,
    lifespan=lifespan
)

# Registered innermost first: metrics -> access gate -> body size limit -> routes
app.add_middleware(
    BodySizeLimitMiddleware,
    max_body_bytes=request_ceiling(settings.max_upload_bytes),
    paths=PROTECTED_PREFIXES
)
app.add_middleware(
    AccessGateMiddleware,
    classifier=PrivateNetworkClassifier(trust_forwarded_for=settings.trust_forwarded_for)
)
app.add_middleware(MetricsMiddleware)


@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError):
    """Render classified failures as {"ok": false, "error": reason}."""
    source = SOURCE_BY_PATH.get(request.url.path, "other")
    if exc.status_code >= 500:
        logger.error(
            f"Upload failed: {exc.detail}",
            extra={"event": "upload_failed", "source": source, "error_class": type(exc).__name__}
        )
        uploads_total.labels(source=source, status="failed").inc()
    else:
        log_upload_rejected(
            logger,
            reason=type(exc).__name__,
            source=source,
            detail=exc.detail
        )
        uploads_total.labels(source=source, status="rejected").inc()

    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.reason}
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Request failed FastAPI validation (malformed JSON, wrong field types).
    Rendered as an opaque 400; the validation detail is only logged.
    """
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in errors
    )
    # A text value where the file part should be is a missing file
    if any(err.get("loc", ())[-1:] and err["loc"][-1] in FILE_FIELDS for err in errors):
        error = MissingFile(detail)
    else:
        error = UploadError(detail)
    return await upload_error_handler(request, error)


@app.exception_handler(BodyTooLarge)
async def body_too_large_handler(request: Request, exc: BodyTooLarge):
    """Streamed body passed the size limit."""
    source = SOURCE_BY_PATH.get(request.url.path, "other")
    log_upload_rejected(logger, reason="PayloadTooLarge", source=source, detail=exc.detail)
    uploads_total.labels(source=source, status="rejected").inc()
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": PayloadTooLarge.reason}
    )


app.include_router(api_router, prefix="/api")
app.include_router(root_router)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


if settings.static_dir and os.path.isdir(settings.static_dir):
    # Catch-all; must stay after every route
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
else:
    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Photo Relay API",
            "version": VERSION,
            "environment": settings.environment
        }


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
