from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
import secrets

from formguard.exceptions import SessionUnavailable
from formguard.logging_config import setup_logging
from formguard.settings import settings

from portal.limiter import limiter
from portal.middleware.error_handler import (
    global_exception_handler,
    http_exception_handler,
    session_unavailable_handler,
    validation_exception_handler,
)
from portal.routes import auth_router, dashboard_router

app = FastAPI(title="formguard portal", version="1.0.0")

# Logging setup
setup_logging("INFO")

# Validate configuration at startup (log-only, do not crash the app)
startup_validation = settings.validate_startup()
for err in startup_validation["errors"]:
    logging.error(f"Config error: {err}")
for warn in startup_validation["warnings"]:
    logging.warning(f"Config warning: {warn}")

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware (locked down)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS or [],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=[settings.CSRF_HEADER_NAME, "Content-Type"],
)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    # Nonce is generated before the handler so templates can use it
    if not hasattr(request.state, 'csp_nonce'):
        request.state.csp_nonce = secrets.token_urlsafe(16)

    response = await call_next(request)

    csp_nonce = request.state.csp_nonce
    security_headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Cache-Control": "no-store",
        "Content-Security-Policy": (
            "default-src 'self'; "
            f"script-src 'self' 'nonce-{csp_nonce}'; "
            "style-src 'self' 'unsafe-inline'; "
            "form-action 'self'; "
            "frame-ancestors 'none';"
        ),
    }
    for header, value in security_headers.items():
        response.headers[header] = value
    return response


# Session middleware with secure configuration
SECRET_KEY = settings.SECRET_KEY or secrets.token_urlsafe(32)
app.add_middleware(
    SessionMiddleware,
    secret_key=SECRET_KEY,
    max_age=settings.SESSION_MAX_AGE,
    same_site="strict",
    https_only=settings.SESSION_SECURE,
)

app.include_router(auth_router)
app.include_router(dashboard_router)

# Global error handling
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(SessionUnavailable, session_unavailable_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.get("/healthz", tags=["health"])
async def health_check():
    return JSONResponse({"status": "ok"})
