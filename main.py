"""Voice Journal - record, transcribe and rewrite daily voice journal entries."""

import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.errors import JournalError
from app.rate_limit import limiter
from app.routers import auth_router, journals_router, mood_router, transcribe_router

# Logging
logger = logging.getLogger("voice_journal")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings = get_settings()
for warning in settings.validate():
    logger.warning("CONFIG %s", warning)

app = FastAPI(title="Voice Journal", version="0.1.0")
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "microphone=(self)"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Caps JSON bodies. The upload route enforces its own ceiling while streaming (400, after auth)."""

    MAX_JSON_BODY = 1024 * 1024
    EXEMPT_PATHS = ("/api/v1/transcribe",)

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path.startswith(self.EXEMPT_PATHS):
            return await call_next(request)
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.MAX_JSON_BODY:
            return JSONResponse(status_code=413, content={"detail": "Request body too large", "code": "BAD_REQUEST"})
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PREFIXES = ("/api/v1/transcribe", "/api/v1/journals/", "/api/v1/mood", "/api/v1/auth/")

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        method = request.method
        if method in ("POST", "PUT", "DELETE") and path.startswith(self.AUDIT_PREFIXES):
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

# API routers
app.include_router(auth_router)
app.include_router(transcribe_router)
app.include_router(journals_router)
app.include_router(mood_router)


# --- Error handlers ---
@app.exception_handler(JournalError)
async def journal_error_handler(request: Request, exc: JournalError) -> JSONResponse:
    """Render domain errors with their fixed status code. Upstream text never reaches the client."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Try again later.", "code": "RATE_LIMITED"},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "INTERNAL_ERROR"})


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "voice-journal", "version": "0.1.0"}
