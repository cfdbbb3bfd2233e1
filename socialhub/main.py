"""
SocialHub Backend: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the store handle, registers middleware, exception
       handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn socialhub.main:app`); tests call create_app()
       with their own Database.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  Request ID → Rate Limit → Access Log → CORS │
    │                                                          │
    │  Routers:     /auth  /posts  /profiles  /search  /health │
    │                                                          │
    │  app.state:   config, database (engine + sessions),      │
    │               mailer                                     │
    │                                                          │
    │  Errors:      SocialHubError → its status_code           │
    │               request validation → 400                   │
    │               anything else → 500                        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   configure logging, validate production settings
    Shutdown:  dispose the database engine
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from socialhub import __version__
from socialhub.config import Settings, settings as default_settings
from socialhub.database import Database
from socialhub.exceptions import SocialHubError
from socialhub.middleware.logging import RequestLoggingMiddleware
from socialhub.middleware.rate_limit import RateLimitMiddleware
from socialhub.middleware.request_id import RequestIDMiddleware, request_id_var
from socialhub.routes import auth, health, posts, profiles, search
from socialhub.schemas.common import ErrorResponse
from socialhub.services.mailer import LoggingMailer, Mailer

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings) -> None:
    """
    Configures the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] socialhub.services.content_service: Post created: ...
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-statement and per-request chatter from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.config

    setup_logging(config)
    logger.info("SocialHub Backend %s starting (%s)", __version__, config.environment)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health stays reachable and reports the state
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)

    yield

    logger.info("SocialHub Backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def error_response(
    status_code: int,
    message: str,
    request: Request,
    details: Optional[dict] = None,
    stack: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=message,
        details=details or None,
        request_id=_request_id(request),
        stack=stack,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def _describe_validation_errors(exc: RequestValidationError) -> str:
    """'body.email: Value error, Please include a valid email; query.limit: ...'"""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI, config: Settings) -> None:
    """
    Maps exceptions to the error envelope.

    Handler hierarchy:
        SocialHubError (and subclasses) → exc.status_code
        RequestValidationError          → 400
        Starlette HTTPException         → its status (unknown route 404, 405, ...)
        Exception                       → 500, stack trace only outside production
    """

    @app.exception_handler(SocialHubError)
    async def handle_app_error(request: Request, exc: SocialHubError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            return error_response(exc.status_code, exc.message, request)

        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        details = {"field": exc.field} if getattr(exc, "field", None) else None
        return error_response(exc.status_code, exc.message, request, details=details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _describe_validation_errors(exc)
        logger.warning("[%s] Request validation failed: %s", _request_id(request), message)
        return error_response(400, message, request)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), request, headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        stack = None
        if not config.is_production:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return error_response(500, "Server error", request, stack=stack)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[Settings] = None,
    database: Optional[Database] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Assembles the application.

    Args:
        config:    Settings to run with (defaults to the environment)
        database:  Store handle; built from config.database_url when omitted
        mailer:    Password reset delivery; LoggingMailer when omitted
    """
    config = config or default_settings

    app = FastAPI(
        title="SocialHub API",
        description="Social media backend: accounts, posts, likes, comments, follows and search.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Created here, not in the lifespan, so transports that skip lifespan
    # events (httpx ASGITransport) still get a working store handle
    app.state.config = config
    app.state.database = database or Database(config.database_url, config=config)
    app.state.mailer = mailer or LoggingMailer(config)

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=config.rate_limit_requests,
        window_seconds=config.rate_limit_window,
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app, config)

    # ── Routers ───────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(profiles.router)
    app.include_router(search.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: `uvicorn socialhub.main:app`
app = create_app()
