"""
Deskmate Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       with its TokenService and CredentialStore attached to `app.state`.
Who:   Called by uvicorn (deskmate.main:app) and by the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐             │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │             │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘             │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────────┐ ┌──────────────────────┐ ┌──────────┐  │
    │  │ accounts     │ │ notes/todos/journal  │ │ health   │  │
    │  └──────────────┘ └──────────────────────┘ └──────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ Unauthorized→401 │ NotFound→404   │  │
    │  │ Duplicate→409  │ Database→500                      │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Create missing tables if AUTO_CREATE_TABLES is on

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import secrets
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from deskmate import __version__
from deskmate.config import Settings, settings
from deskmate.database import create_tables, dispose_engine
from deskmate.exceptions import (
    DatabaseError,
    DeskmateError,
    DuplicateIdentityError,
    NoChangesRequestedError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from deskmate.middleware.logging import RequestLoggingMiddleware
from deskmate.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from deskmate.routes import accounts, health, resources
from deskmate.services.credential_store import CredentialStore
from deskmate.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Access lines from RequestLoggingMiddleware carry the request ID in
    the message and as `extra` fields for structured handlers.
    """
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, configuration check, optional table creation.
    Shutdown: dispose the engine.
    """
    app_settings: Settings = app.state.settings

    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Deskmate Backend %s starting up...", __version__)

    # Not fatal: the server still answers, with tokens signed by an ephemeral key
    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    if app_settings.auto_create_tables:
        await create_tables()
        logger.info("Database tables ensured")

    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Deskmate Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build the standard error body: {error, message, details?, request_id}."""
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        ValidationError         → 400 validation_error
        NoChangesRequestedError → 400 no_changes_requested
        RequestValidationError  → 400 (malformed JSON, wrong field types)
        UnauthorizedError       → 401 + WWW-Authenticate: Bearer
        NotFoundError           → 404
        DuplicateIdentityError  → 409
        DatabaseError           → 500, generic message
        DeskmateError (base)    → 500
        Exception (fallback)    → 500, stack trace logged only

    Handlers never put internal details (stack traces, SQL, token failure
    reasons) in a response body.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        details = {"field": exc.field} if exc.field else None
        return error_response(400, "validation_error", exc.message, details)

    @app.exception_handler(NoChangesRequestedError)
    async def handle_no_changes(request: Request, exc: NoChangesRequestedError):
        return error_response(400, "no_changes_requested", exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request body")
        logger.warning("[%s] Request validation error: %s", request_id_var.get(""), message)
        return error_response(
            400,
            "validation_error",
            message,
            {"field": field} if field else None,
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        return error_response(
            401, "unauthorized", exc.message, headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(DuplicateIdentityError)
    async def handle_duplicate_identity(request: Request, exc: DuplicateIdentityError):
        logger.info("[%s] Duplicate registration rejected", request_id_var.get(""))
        return error_response(409, "duplicate_identity", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(DeskmateError)
    async def handle_deskmate_error(request: Request, exc: DeskmateError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_token_service(app_settings: Settings) -> TokenService:
    """
    TokenService for the configured secret.

    Without SECRET_KEY a random key is generated: tokens work until the
    process restarts, then every one of them is rejected.
    """
    secret = app_settings.secret_key
    if not secret:
        logger.warning("SECRET_KEY is not set; signing session tokens with an ephemeral key")
        secret = secrets.token_urlsafe(32)
    return TokenService(
        secret,
        ttl=timedelta(days=app_settings.token_ttl_days),
        algorithm=app_settings.token_algorithm,
    )


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Services live on `app.state` rather than at module level, so a test
    can build an app around its own settings.
    """
    app = FastAPI(
        title="Deskmate API",
        description=(
            "Personal productivity backend: accounts with bearer-token sessions, "
            "and private notes, todos and journal units for each account."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Set here, not in lifespan: test clients on ASGITransport skip lifespan
    app.state.settings = app_settings
    app.state.token_service = build_token_service(app_settings)
    app.state.credential_store = CredentialStore(bcrypt_rounds=app_settings.bcrypt_rounds)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(accounts.router)
    app.include_router(resources.router)

    return app


# uvicorn expects `deskmate.main:app` to be importable
app = create_app()
