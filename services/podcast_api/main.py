"""Podcast Media Backend - Podcast API FastAPI application.

Endpoints for uploading, listing, fetching and deleting podcasts, plus the
health check, frontend static files and the HTML not-found fallback.

Run with:
    podcast-api                                         # configured host/port
    uvicorn services.podcast_api.main:app --reload      # dev server only
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, File, Form, Request, Response, UploadFile
from fastapi.exception_handlers import (
    http_exception_handler,
    request_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app import config
from app.db import init_db
from app.schemas import ErrorResponse, PodcastResponse
from services.podcast_api.service import (
    PodcastError,
    PodcastErrorCode,
    delete_all_podcasts,
    delete_podcast,
    fetch_all_podcasts,
    fetch_podcast,
    ingest_podcast_upload,
)

logger = logging.getLogger(__name__)

HEALTH_CHECK_HTML = "<h1>Service is running</h1>"
NOT_FOUND_HTML = "<h1>Not Found</h1>"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Per-connection chatter from the HTTP client used by TestClient and
    # multipart part-level debug output.
    for noisy in ("httpx", "httpcore", "multipart", "python_multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# --- Database Setup ---

# Module-level session factory (initialized on startup)
_session_factory = None


def get_session_factory():
    """Get the session factory.

    Raises:
        RuntimeError: If session factory not initialized (app lifespan not invoked).
    """
    if _session_factory is None:
        raise RuntimeError("Session factory not initialized. App lifespan not invoked?")
    return _session_factory


def get_db_session():
    """Dependency that provides one database session per request."""
    SessionFactory = get_session_factory()
    session = SessionFactory()
    try:
        yield session
    finally:
        session.close()


# --- Lifespan ---


def _prepare_audio_dir() -> None:
    """Create the audio directory and sweep temp files left by interrupted writes.

    Directory creation failures propagate; temp cleanup is best-effort.
    """
    from app.utils import paths
    from app.utils.atomic_io import cleanup_orphan_temp_files

    paths.AUDIO_DIR.mkdir(parents=True, exist_ok=True)

    try:
        removed = cleanup_orphan_temp_files(paths.AUDIO_DIR)
        if removed > 0:
            logger.info("Startup cleanup: removed %d orphan temp files", removed)
    except Exception:
        logger.warning("Startup cleanup failed (non-fatal)", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Provisions the database and audio directory before serving traffic.
    """
    global _session_factory
    engine = None
    if _session_factory is None:
        engine, _session_factory = init_db()

    _prepare_audio_dir()

    yield

    if engine is not None:
        engine.dispose()
        _session_factory = None


# --- FastAPI App ---


app = FastAPI(
    title="Podcast Media Backend",
    description="Upload, list, fetch and delete podcast audio files.",
    version="0.1.0",
    lifespan=lifespan,
)


class PayloadTooLarge(StarletteHTTPException):
    """Raised while reading a request body that grows past the limit."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(status_code=413, detail=f"Request body exceeds {limit} bytes")


class RequestBodyLimitMiddleware:
    """Cap request bodies at MAX_UPLOAD_BYTES.

    A declared Content-Length over the limit is rejected before the body is
    read. Bodies without one (chunked transfer) are counted as they arrive
    and the read fails with PayloadTooLarge once the count passes the limit.
    """

    def __init__(self, app: ASGIApp, max_body_size: int | None = None):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.max_body_size if self.max_body_size is not None else config.MAX_UPLOAD_BYTES

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                response = make_error_response(
                    PodcastErrorCode.INVALID_REQUEST, "Invalid Content-Length"
                )
                await response(scope, receive, send)
                return
            if declared > limit:
                await payload_too_large_response(limit)(scope, receive, send)
                return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise PayloadTooLarge(limit)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except PayloadTooLarge:
            # Body read outside a route's exception handling
            if response_started:
                raise
            await payload_too_large_response(limit)(scope, receive, send)


app.add_middleware(RequestBodyLimitMiddleware)

# Added last so it wraps everything, including body-limit rejections
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CORS_ALLOWED_ORIGIN],
    allow_methods=list(config.CORS_ALLOWED_METHODS),
)

if (config.STATIC_DIR / "assets").is_dir():
    app.mount("/assets", StaticFiles(directory=config.STATIC_DIR / "assets"), name="assets")


# --- Error Handling ---


def error_code_to_status(error_code: str) -> int:
    """Map error codes to HTTP status codes.

    - INVALID_REQUEST, UNSUPPORTED_CONTENT_TYPE -> 400
    - PODCAST_NOT_FOUND -> 404
    - PAYLOAD_TOO_LARGE -> 413
    - everything else -> 500
    """
    if error_code in (PodcastErrorCode.INVALID_REQUEST, PodcastErrorCode.UNSUPPORTED_CONTENT_TYPE):
        return 400
    if error_code == PodcastErrorCode.PODCAST_NOT_FOUND:
        return 404
    if error_code == PodcastErrorCode.PAYLOAD_TOO_LARGE:
        return 413
    return 500


def make_error_response(error_code: str, error_message: str) -> JSONResponse:
    """Create a JSON error response."""
    return JSONResponse(
        status_code=error_code_to_status(error_code),
        content=ErrorResponse(
            error_code=error_code,
            error_message=error_message,
        ).model_dump(),
    )


def internal_error_response() -> JSONResponse:
    return make_error_response(PodcastErrorCode.INTERNAL_ERROR, "An unexpected error occurred")


def payload_too_large_response(limit: int) -> JSONResponse:
    return make_error_response(
        PodcastErrorCode.PAYLOAD_TOO_LARGE, f"Request body exceeds {limit} bytes"
    )


@app.exception_handler(StarletteHTTPException)
async def not_found_as_html(request: Request, exc: StarletteHTTPException):
    """Serve unmatched routes as an HTML page; other HTTP errors keep the default.

    PayloadTooLarge raised mid-body gets the same JSON error as an oversize
    Content-Length.
    """
    if exc.status_code == 404:
        return HTMLResponse(NOT_FOUND_HTML, status_code=404)
    if isinstance(exc, PayloadTooLarge):
        return payload_too_large_response(exc.limit)
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def upload_fields_as_invalid_request(request: Request, exc: RequestValidationError):
    """Report malformed upload form fields as INVALID_REQUEST (400).

    Other routes keep FastAPI's 422 validation response.
    """
    if request.method == "POST" and request.url.path == "/podcasts":
        fields = ", ".join(str(err["loc"][-1]) for err in exc.errors() if err.get("loc"))
        return make_error_response(
            PodcastErrorCode.INVALID_REQUEST,
            f"Invalid multipart field: {fields or 'body'}",
        )
    return await request_validation_exception_handler(request, exc)


# --- Endpoints ---

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing field or unsupported content type"},
    404: {"model": ErrorResponse, "description": "Podcast not found"},
    500: {"model": ErrorResponse, "description": "Storage or database failure"},
}


@app.get("/podcasts", response_model=list[PodcastResponse], summary="List podcasts")
def list_podcasts_endpoint(session: Annotated[Session, Depends(get_db_session)]):
    try:
        podcasts = fetch_all_podcasts(session)
    except PodcastError as e:
        return make_error_response(e.error_code, e.message)
    except Exception:
        logger.exception("Unexpected error while listing podcasts")
        return internal_error_response()
    return [PodcastResponse.model_validate(p) for p in podcasts]


@app.post(
    "/podcasts",
    response_model=PodcastResponse,
    responses={
        400: ERROR_RESPONSES[400],
        413: {"model": ErrorResponse, "description": "Request body too large"},
        500: ERROR_RESPONSES[500],
    },
    summary="Upload a podcast",
)
def create_podcast_endpoint(
    session: Annotated[Session, Depends(get_db_session)],
    title: Annotated[str | None, Form(description="Display title")] = None,
    file: Annotated[UploadFile | None, File(description="Audio file")] = None,
):
    """Upload an audio file with a title.

    Accepts multipart form data with:
    - title: non-empty display title
    - file: audio payload declared as audio/mpeg, audio/mp3, audio/ogg,
      audio/wav or audio/flac

    Other form fields are ignored.
    """
    try:
        podcast = ingest_podcast_upload(
            session=session,
            title=title,
            content_type=file.content_type if file is not None else None,
            stream=file.file if file is not None else None,
        )
    except PodcastError as e:
        return make_error_response(e.error_code, e.message)
    except Exception:
        logger.exception("Unexpected error during podcast upload")
        return internal_error_response()
    return PodcastResponse.model_validate(podcast)


@app.get(
    "/podcasts/{podcast_id}",
    response_model=PodcastResponse,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
    summary="Fetch a podcast",
)
def get_podcast_endpoint(
    podcast_id: uuid.UUID,
    session: Annotated[Session, Depends(get_db_session)],
):
    try:
        podcast = fetch_podcast(session, podcast_id)
    except PodcastError as e:
        return make_error_response(e.error_code, e.message)
    except Exception:
        logger.exception("Unexpected error while fetching podcast %s", podcast_id)
        return internal_error_response()
    return PodcastResponse.model_validate(podcast)


@app.delete(
    "/podcasts/{podcast_id}",
    status_code=204,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
    summary="Delete a podcast and its file",
)
def delete_podcast_endpoint(
    podcast_id: uuid.UUID,
    session: Annotated[Session, Depends(get_db_session)],
):
    try:
        delete_podcast(session, podcast_id)
    except PodcastError as e:
        return make_error_response(e.error_code, e.message)
    except Exception:
        logger.exception("Unexpected error while deleting podcast %s", podcast_id)
        return internal_error_response()
    return Response(status_code=204)


@app.delete(
    "/podcasts",
    status_code=204,
    responses={500: ERROR_RESPONSES[500]},
    summary="Delete every podcast and its file",
)
def delete_all_podcasts_endpoint(session: Annotated[Session, Depends(get_db_session)]):
    try:
        delete_all_podcasts(session)
    except PodcastError as e:
        return make_error_response(e.error_code, e.message)
    except Exception:
        logger.exception("Unexpected error while deleting all podcasts")
        return internal_error_response()
    return Response(status_code=204)


@app.get("/health_check", response_class=HTMLResponse, summary="Health check")
def health_check():
    """Liveness only."""
    return HTMLResponse(HEALTH_CHECK_HTML)


@app.get("/", include_in_schema=False)
def index():
    index_file = config.STATIC_DIR / "index.html"
    if not index_file.is_file():
        return HTMLResponse(NOT_FOUND_HTML, status_code=404)
    return FileResponse(index_file)


# --- For testing: allow overriding session factory ---


def override_session_factory(factory):
    """Override the session factory for testing."""
    global _session_factory
    _session_factory = factory


def main() -> None:
    """Console entry point: configure logging and serve the API."""
    import uvicorn

    configure_logging()
    logger.info("Listening on %s:%d", config.SERVER_HOST, config.SERVER_PORT)
    uvicorn.run(app, host=config.SERVER_HOST, port=config.SERVER_PORT, log_config=None)


if __name__ == "__main__":
    main()
