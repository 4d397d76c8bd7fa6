"""
PadPress Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the services from Settings, stores them on
       `app.state`, registers middleware, exception handlers and routes.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain:                                           │
    │  ┌────────────┐ ┌────────┐ ┌─────────┐ ┌──────────────────┐  │
    │  │ Rate Limit │→│ Req ID │→│ Logging │→│ GZip/CORS/Session│  │
    │  └────────────┘ └────────┘ └─────────┘ └──────────────────┘  │
    │                                                              │
    │  Routes:                                                     │
    │  ┌──────────┐ ┌────────────┐ ┌──────────────┐ ┌───────────┐  │
    │  │ /new     │ │ /note/..   │ │ /github/..   │ │ /health   │  │
    │  │ /note    │ │ /slide/..  │ │ /gitlab/..   │ │ /{id} (*) │  │
    │  └──────────┘ └────────────┘ └──────────────┘ └───────────┘  │
    │                                                              │
    │  Exception Handlers → app/responder.py                       │
    │  ┌────────────────────────────────────────────────────────┐  │
    │  │ Forbidden→403/login │ NotFound→404 │ TooLarge→413 │ ...│  │
    │  └────────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────────┘

    (*) registered last so it never shadows another route.

Lifecycle:
    Startup:  logging, configuration check, ready banner
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from app import __version__
from app.config import Settings, settings
from app.database import dispose_engine
from app.exceptions import (
    BadRequestError,
    ExternalServiceError,
    ForbiddenError,
    InternalError,
    NoteIdDecodeError,
    NotFoundError,
    PadPressError,
    PayloadTooLargeError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.responder import (
    error_bad_request,
    error_forbidden,
    error_internal_error,
    error_not_found,
    error_too_long,
)
from app.routes import health, integrations, notes, slides
from app.services.actions import ActionDispatcher
from app.services.history_service import history_service
from app.services.note_resolver import NoteResolver, ResolverConfig
from app.services.note_service import NoteService
from app.services.note_store import note_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("PadPress Backend starting up...")

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: notes still work, only the flagged features are refused
        logger.error("Configuration error: %s", str(e))

    logger.info(
        "Free URL: %s | anonymous creation: %s | max note length: %d",
        app_settings.allow_free_url,
        app_settings.allow_anonymous,
        app_settings.document_max_length,
    )
    logger.info("Server ready at %s", app_settings.server_url)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("PadPress Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure kind onto the error responder.

    Handler hierarchy:
        ForbiddenError          → 403 page, or sign-in redirect when anonymous
        ExternalServiceError    → same as ForbiddenError
        NotFoundError           → 404 page
        BadRequestError         → 400 page
        RequestValidationError  → 400 page
        PayloadTooLargeError    → 413 page
        InternalError           → 500 page (DatabaseError, NoteCreateError)
        NoteIdDecodeError       → 500 page
        PadPressError (base)    → 500 page
        Exception (fallback)    → 500 page

    The page never shows exception messages or context; those are logged.
    """

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.info("[%s] Forbidden: %s", request_id_var.get(""), exc.message)
        return error_forbidden(request)

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service(request: Request, exc: ExternalServiceError):
        logger.warning(
            "[%s] External service error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_forbidden(request)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_not_found(request)

    @app.exception_handler(BadRequestError)
    async def handle_bad_request(request: Request, exc: BadRequestError):
        logger.warning("[%s] Bad request: %s", request_id_var.get(""), exc.message)
        return error_bad_request(request)

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), exc.errors())
        return error_bad_request(request)

    @app.exception_handler(PayloadTooLargeError)
    async def handle_too_large(request: Request, exc: PayloadTooLargeError):
        logger.warning("[%s] %s", request_id_var.get(""), exc.message)
        return error_too_long(request)

    @app.exception_handler(InternalError)
    async def handle_internal(request: Request, exc: InternalError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return error_internal_error(request)

    @app.exception_handler(NoteIdDecodeError)
    async def handle_decode(request: Request, exc: NoteIdDecodeError):
        logger.error("[%s] Undecodable note id %r: %s", request_id_var.get(""), exc.token, exc.message)
        return error_internal_error(request)

    @app.exception_handler(PadPressError)
    async def handle_padpress(request: Request, exc: PadPressError):
        logger.error(
            "[%s] Unhandled application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_internal_error(request)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_not_found(request)
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_internal_error(request)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Assemble the application.

    Args:
        app_settings: Settings to build services from; the process-wide
            `settings` when omitted. Tests pass their own.

    Services on `app.state` (read by app/deps.py):
        settings, server_url, resolver, dispatcher, note_service,
        history_service, note_store
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="PadPress",
        description="Note resolution, access control and note actions for the PadPress editor.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Services ──────────────────────────────────────────────────────────
    app.state.settings = app_settings
    app.state.server_url = app_settings.server_url
    app.state.note_store = note_store
    app.state.history_service = history_service
    app.state.resolver = NoteResolver(ResolverConfig.from_settings(app_settings), store=note_store)
    app.state.dispatcher = ActionDispatcher.from_settings(app_settings)
    app.state.note_service = NoteService.from_settings(app_settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS → Session
    app.add_middleware(
        SessionMiddleware,
        secret_key=app_settings.session_secret,
        session_cookie="padpress.sid",
        same_site="lax",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=app_settings.rate_limit_requests,
        window=app_settings.rate_limit_window,
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(notes.router)
    app.include_router(slides.router)
    app.include_router(integrations.router)
    app.include_router(notes.editor_router)

    return app


app = create_app()
