"""Anonymous Voice - anonymous voice note collection backend."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.dependencies import get_voice_note_service
from app.exceptions import VoiceNoteError
from app.rate_limit import limiter
from app.routers import admin_router, voice_notes_router
from app.schemas.voice_note import HealthResponse
from app.services.voice_note import VoiceNoteService, create_voice_note_service

# Logging
logger = logging.getLogger("anon_voice")
logging.basicConfig(level=get_settings().log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the voice note registry for this process and discard it on shutdown."""
    settings = get_settings()
    for warning in settings.validate():
        logger.warning(warning)
    if settings.STORAGE_BUCKET:
        logger.info("Object storage configured for bucket %s", settings.STORAGE_BUCKET)

    app.state.voice_note_service = create_voice_note_service(settings)
    yield
    app.state.voice_note_service = None


app = FastAPI(title="Anonymous Voice", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies whose declared Content-Length exceeds the upload limit.

    Chunked requests carry no Content-Length and pass through; for those the upload
    route still refuses payloads over MAX_UPLOAD_SIZE_MB after the form is parsed.
    """

    MULTIPART_OVERHEAD = 1024 * 1024  # room for form fields and boundaries

    async def dispatch(self, request: Request, call_next) -> Response:
        max_body_size = get_settings().max_upload_bytes + self.MULTIPART_OVERHEAD
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > max_body_size:
            return JSONResponse(status_code=413, content={"error": "Request body too large"})
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {"/api/upload-voice", "/api/admin/voice-notes"}

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        # Log mutating operations
        path = request.url.path
        method = request.method
        if method in ("POST", "DELETE") and any(path.startswith(p) for p in self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(AuditLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(voice_notes_router)
app.include_router(admin_router)


# --- Voice note errors -> JSON envelope ---
@app.exception_handler(VoiceNoteError)
async def voice_note_error_handler(request: Request, exc: VoiceNoteError) -> JSONResponse:
    """Render domain errors as {error, details?}."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.__cause__ or "")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    return JSONResponse(status_code=429, content={"error": "Rate limit exceeded. Try again later."})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown routes, wrong methods) in the same envelope."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid input", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected: log the traceback, return a generic message."""
    logger.exception("Server error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# --- Health check ---
@app.get("/api/health", response_model=HealthResponse)
def health_check(service: VoiceNoteService = Depends(get_voice_note_service)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(timestamp=datetime.now(timezone.utc), totalNotes=service.count())


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info("Anonymous Voice backend starting on port %d", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
