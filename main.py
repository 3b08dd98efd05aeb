"""AgriRent - Agricultural Equipment Rental Backend."""

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from agrirent.config import get_settings
from agrirent.origin import OriginPolicy, OriginPolicyMiddleware
from agrirent.rate_limit import limiter
from agrirent.routers import accounts_router, auth_router
from agrirent.services.auth import INTERNAL_ERROR_MESSAGE, AuthService
from agrirent.services.mailer import build_mailer
from agrirent.services.tokens import TokenService

# Logging
logger = logging.getLogger("agrirent")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

VERSION = "1.0.0"

settings = get_settings()
for warning in settings.validate():
    logger.warning(warning)

app = FastAPI(title="AgriRent", version=VERSION)
app.state.limiter = limiter

# Services are built once and shared through app.state
token_service = TokenService(settings)
app.state.token_service = token_service
app.state.auth_service = AuthService(token_service, build_mailer(settings), settings)
origin_policy = OriginPolicy.from_settings(settings)


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    MAX_BODY_SIZE = 10 * 1024 * 1024  # 10MB

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > self.MAX_BODY_SIZE:
            return JSONResponse(status_code=413, content={"detail": "Request body too large"})
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PREFIXES = ("/api/auth/", "/api/accounts/")

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        # Log account mutations only
        path = request.url.path
        method = request.method
        if method in ("POST", "DELETE") and path.startswith(self.AUDIT_PREFIXES):
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
    allow_origins=origin_policy.allowed_origins(),
    allow_origin_regex=origin_policy.pattern_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
)
# Added last so it runs first: disallowed origins never reach CORS handling or routes
app.add_middleware(OriginPolicyMiddleware, policy=origin_policy)

# API routers
app.include_router(auth_router)
app.include_router(accounts_router)


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded. Try again later."})


# --- Catch-all: never leak driver or transport errors ---
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    """Log unexpected errors and answer with a generic 500."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": INTERNAL_ERROR_MESSAGE})


# --- Index and health check ---
@app.get("/")
def index() -> dict:
    """List the API endpoint groups."""
    return {
        "message": "Rental App Backend API",
        "version": VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "accounts": "/api/accounts",
        },
    }


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "agrirent", "version": VERSION, "environment": settings.APP_ENV}
