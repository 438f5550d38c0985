"""
api/main.py -- FastAPI application entry point for the portfolio backend.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan opens the database (one engine for the whole process), creates
missing tables and builds the stores on startup; it disposes the engine on
shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthData, HealthResponse, MessageResponse, ViolationModel
from api.routes.auth import router as auth_router
from api.routes.resources import build_resource_router
from api.routes.users import router as users_router
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from content.resources import ALL_RESOURCES, CONTACTS, PROJECTS, QUALIFICATIONS
from content.store import ResourceStore
from core.config import get_settings
from core.database import Database
from core.errors import PortfolioError, ValidationFailed

API_VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.DEBUG if _settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("portfolio.api")

# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


def init_state(app: FastAPI, db: Database) -> None:
    """Attach the database and every store to app.state.

    Split out of lifespan so tests can wire the app to their own database.
    """
    app.state.db = db
    app.state.user_store = UserStore(db)
    app.state.resources = {spec.name: ResourceStore(db, spec) for spec in ALL_RESOURCES}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage the database across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("Portfolio API starting up")
    db = Database(_settings.database_url)
    db.create_all()
    init_state(app, db)
    if not app.state.user_store.has_admin():
        logger.warning("No admin account exists. Create one with: python main.py create-admin")
    logger.info("Stores initialized (%s)", ", ".join(app.state.resources))

    yield

    db.close()
    logger.info("Portfolio API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Portfolio API",
    description="Contacts, projects and qualifications behind a bearer-token admin gate.",
    version=API_VERSION,
    lifespan=lifespan,
    # Disable built-in /docs and /redoc so we can add auth protection.
    # Auth-protected equivalents are registered below.
    docs_url=None,
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Pattern: Interceptor. Every request passes through this coroutine before
# reaching any route handler, so latency is reported on every response.
# ---------------------------------------------------------------------------


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

app.include_router(auth_router, tags=["Auth"])
app.include_router(users_router, tags=["Users"])
# Contacts come from a public form: anyone may submit, only admins may read.
app.include_router(build_resource_router(CONTACTS, public_read=False, public_create=True), tags=["Contacts"])
app.include_router(build_resource_router(PROJECTS, public_read=True, public_create=False), tags=["Projects"])
app.include_router(
    build_resource_router(QUALIFICATIONS, public_read=True, public_create=False),
    tags=["Qualifications"],
)


# ---------------------------------------------------------------------------
# Auth-protected API documentation
# ---------------------------------------------------------------------------


@app.get("/docs", include_in_schema=False)
async def docs(user: User = Depends(get_current_user)):
    """Swagger UI -- requires authentication."""
    return get_swagger_ui_html(openapi_url="/openapi.json", title="Portfolio API")


@app.get("/redoc", include_in_schema=False)
async def redoc(user: User = Depends(get_current_user)):
    """ReDoc UI -- requires authentication."""
    return get_redoc_html(openapi_url="/openapi.json", title="Portfolio API")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    body = ErrorResponse(code=code, message=message, **extra)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    """Map every expected failure raised by stores and services to its status."""
    errors = None
    if isinstance(exc, ValidationFailed):
        errors = [ViolationModel(**v.to_dict()) for v in exc.violations]
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.code, exc.message, errors=errors)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a Retry-After header when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests. Please try again later.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """A body that is missing or not a JSON object is a validation failure like any other."""
    errors = [
        ViolationModel(
            field=".".join(str(part) for part in err.get("loc", ())[1:]) or "body",
            message=str(err.get("msg", "Invalid value")),
        )
        for err in exc.errors()
    ]
    return _error(400, ValidationFailed.code, ValidationFailed.default_message, errors=errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes (404) and wrong methods (405) get the envelope too."""
    message = str(exc.detail) if exc.detail else "HTTP error"
    response = _error(exc.status_code, f"http_{exc.status_code}", message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log. The response carries it only when
    DEBUG=true.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    detail = str(exc) if _settings.debug else None
    return _error(500, "server_error", "Server error", detail=detail)


# ---------------------------------------------------------------------------
# Welcome and health endpoints
#
# No rate limit applied -- health checks from load balancers and monitoring
# systems must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api", tags=["Health"])
async def welcome() -> MessageResponse:
    return MessageResponse(message="Welcome to the Portfolio API")


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    db: Database = request.app.state.db
    return HealthResponse(
        data=HealthData(version=API_VERSION, database="ok" if db.ping() else "unavailable"),
    )
