"""
EventHub Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       with its own MongoDatabase attached to app.state.
Who:   uvicorn (uvicorn eventhub.main:app), tests (create_app()).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐        │
    │  │ Req ID   │→│ Logging  │→│ GZip │→│ CORS │        │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘        │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────────────┐ ┌─────────────┐   │
    │  │ /api/v3/app/events (CRUD)    │ │ GET /health │   │
    │  └──────────────────────────────┘ └─────────────┘   │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ Database→500 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Connect to MongoDB and ping it; on failure the lifespan raises and
       the process exits (no retry)
    Shutdown:
    1. Close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from eventhub import __version__
from eventhub.config import settings
from eventhub.database import MongoDatabase
from eventhub.exceptions import (
    DatabaseError,
    EventHubError,
    NotFoundError,
    ValidationError,
)
from eventhub.middleware.logging import RequestLoggingMiddleware
from eventhub.middleware.request_id import RequestIDMiddleware, request_id_var
from eventhub.routes import events, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # The access middleware already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect to MongoDB before serving and disconnect afterwards.

    A failed initial connection is fatal: the DatabaseError propagates out of
    the lifespan, uvicorn aborts startup and the process exits.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("EventHub Backend %s starting up...", __version__)

    database: MongoDatabase = app.state.database
    try:
        await database.connect()
    except DatabaseError as e:
        logger.critical("Database connection failed, exiting: %s", e.reason)
        raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("Events API mounted at %s/events", settings.api_prefix)
    logger.info("=" * 60)

    yield

    logger.info("EventHub Backend shutting down...")
    database.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def error_response(
    request: Request,
    status_code: int,
    error: str,
    details: Any = None,
) -> JSONResponse:
    """Render the shared error envelope: {error, details?, request_id}."""
    content = {"error": error, "request_id": _request_id(request)}
    if details is not None:
        content["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes.

    Handler hierarchy:
        ValidationError (incl. ImageError) → 400
        RequestValidationError             → 400 (schema failures, same envelope)
        NotFoundError                      → 404
        DatabaseError                      → 500 with the driver message
        EventHubError (base)               → 500
        Exception (fallback)               → 500
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return error_response(request, 400, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Invalid request: %s", _request_id(request), exc.errors())
        return error_response(request, 400, "Invalid request parameters", exc.errors())

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(request, 404, exc.message, exc.details)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | %s",
            _request_id(request),
            exc.message,
            exc.reason,
        )
        return error_response(request, 500, exc.message, exc.details)

    @app.exception_handler(EventHubError)
    async def handle_eventhub_error(request: Request, exc: EventHubError):
        logger.error("[%s] Application error: %s", _request_id(request), exc.message)
        return error_response(request, 500, exc.message, exc.details)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            _request_id(request),
            str(exc),
            exc_info=True,
        )
        return error_response(request, 500, "Internal server error", str(exc))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[MongoDatabase] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: connection wrapper to use; a new MongoDatabase built from
            settings when omitted. The instance is stored on app.state and
            reached by handlers through the database dependencies.
    """
    app = FastAPI(
        title="EventHub API",
        description=(
            "CRUD API for event records with an embedded image, "
            "backed by MongoDB."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database if database is not None else MongoDatabase(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(events.router)
    app.include_router(health.router)

    return app


# uvicorn expects `eventhub.main:app` to be importable
app = create_app()
