"""
VideoTube Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       bound to one ConnectionManager (stored on `app.state.db`).
Who:   uvicorn (`videotube.main:app`, or `python -m videotube`) and tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌─────────┐ ┌──────┐ ┌──────────────────┐  │
    │  │  Req ID  │→│ Logging │→│ CORS │→│ Body Limit 16KiB │  │
    │  └──────────┘ └─────────┘ └──────┘ └──────────────────┘  │
    │                                                          │
    │  Routes:   GET /   /api/v1/users   /api/v1/videos        │
    │  Static:   <static_dir> mounted read-only at /           │
    │                                                          │
    │  Errors:   async_handler + global handlers               │
    │            → {"success": false, "message": ...}          │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Ensure the static directory exists
    3. ConnectionManager.connect(); on failure log and re-raise so the
       server never starts accepting connections
    Shutdown:
    1. Dispose the engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from videotube import __version__
from videotube.config import settings
from videotube.database import ConnectionManager
from videotube.exceptions import ApiError, DatabaseConnectionError
from videotube.executor import error_response
from videotube.middleware.body_limit import BodySizeLimitMiddleware
from videotube.middleware.logging import RequestLoggingMiddleware
from videotube.middleware.request_id import RequestIDMiddleware, request_id_var
from videotube.routes import health, users, videos

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once at startup, before any other initialization.
    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("VideoTube Backend %s starting up...", __version__)

    Path(settings.static_dir).mkdir(parents=True, exist_ok=True)

    manager: ConnectionManager = app.state.db
    try:
        await manager.connect()
    except DatabaseConnectionError:
        # Serving without storage is meaningless: abort startup
        logger.error("Startup aborted: the database is unreachable.")
        await manager.dispose()
        raise

    logger.info("Server ready on %s:%d", settings.host, settings.port)

    yield

    logger.info("VideoTube Backend shutting down...")
    await manager.dispose()
    logger.info("Shutdown complete.")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Global handlers for errors raised outside a wrapped handler (dependencies,
    routing, body parsing). They produce the same body as async_handler.

    Handler hierarchy:
        ApiError                → its status_code (default 500)
        HTTPException           → its status_code (404/405 from routing, 413 from body limit)
        RequestValidationError  → 422 with field-level errors
        Exception               → 500, safe default message
    """

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or None,
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", rid, errors)
        return JSONResponse(
            status_code=422,
            content={"success": False, "message": "Validation failed", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        return error_response(exc)


def create_app(manager: Optional[ConnectionManager] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        manager: ConnectionManager to bind. Built from settings when omitted;
                 tests pass one bound to an in-memory store.
    """
    app = FastAPI(
        title="VideoTube API",
        description="Video hosting backend: users, videos and watch history.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.db = manager or ConnectionManager.from_settings(settings)

    # Middleware executes in REVERSE order of addition
    app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.max_body_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(videos.router)

    # Mounted last so API routes win; check_dir=False because the lifespan
    # creates the directory
    app.mount("/", StaticFiles(directory=settings.static_dir, check_dir=False), name="static")

    return app


app = create_app()
