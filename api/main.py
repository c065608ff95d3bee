"""
api/main.py -- FastAPI application entry point for the Exam Adda API.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. log_requests          -- logs method, path, status and latency of every request
  2. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  3. CORSMiddleware        -- adds CORS headers for the configured browser origins
  4. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan opens the process-wide CredentialStore on startup and disposes its
connection pool on shutdown. Routes reach it through app.state.store.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import HealthResponse, error_body
from api.routes.v1.auth import router as auth_router
from api.routes.v1.dashboard import router as dashboard_router
from api.routes.v1.institutes import router as institutes_router
from api.routes.v1.users import router as users_router
from auth.errors import ServiceError
from auth.store import CredentialStore
from core.config import get_settings

API_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("examadda.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the database handle for the whole server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. No request handler creates or replaces the store.
    """
    logger.info("Exam Adda API starting up (environment=%s)", _settings.environment)
    app.state.store = CredentialStore(_settings.database_url)
    logger.info("Credential store initialized")

    yield

    app.state.store.close()
    logger.info("Exam Adda API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Exam Adda API",
    description="Accounts, institutes and dashboards for the Exam Adda examination platform.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

# Starlette wraps in reverse order of registration: the last middleware added
# is the outermost. log_requests (registered below) wraps all three.
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(institutes_router, prefix="/api", tags=["Institutes"])
app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same failure envelope ({success: false, message,
# data: null, error: {code, message, detail}}) so clients can parse errors
# uniformly.
# ---------------------------------------------------------------------------


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map a service-layer failure to its HTTP status."""
    response = JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))
    if exc.status_code == 401:
        response.headers["Cache-Control"] = "no-store"
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(status_code=429, content=error_body("rate_limited", "Too many requests.", str(exc)))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation."""
    return JSONResponse(
        status_code=422,
        content=error_body("validation_error", "Request validation failed.", str(exc.errors())),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap FastAPI/Starlette HTTP exceptions (404 route, 405 method, ...) in the envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(f"http_{exc.status_code}", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged, never returned. The client receives only a
    generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("internal_error", "An unexpected error occurred."),
    )


# ---------------------------------------------------------------------------
# Health and index
#
# Defined directly in main.py so they are reachable regardless of router
# registration. No rate limit -- load balancer health checks must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    try:
        database = "ok" if request.app.state.store.ping() else "error"
    except Exception:
        logger.exception("Health check database ping failed")
        database = "error"
    return HealthResponse(version=API_VERSION, components={"app": "ok", "database": database})


_HTTP_METHODS = {"get", "post", "put", "patch", "delete"}


@app.get("/api", tags=["Health"])
async def api_index() -> dict:
    """List every mounted API route as "METHOD /path".

    Built from the OpenAPI schema so routes inside included routers are
    listed no matter how FastAPI stores them internally.
    """
    routes = sorted(
        f"{method.upper()} {path}"
        for path, operations in app.openapi()["paths"].items()
        if path.startswith("/api/")
        for method in operations
        if method in _HTTP_METHODS
    )
    return {"message": "API is running", "routes": routes}
