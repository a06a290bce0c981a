"""
Angle Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Served by uvicorn (uvicorn angle.main:app, or python -m angle).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────┐ ┌────────┐ ┌─────────┐ ┌──────┐                │
    │  │ CORS │→│ Req ID │→│ Logging │→│ GZip │                │
    │  └──────┘ └────────┘ └─────────┘ └──────┘                │
    │                                                          │
    │  Routes:                                                 │
    │  /api/episodes  /api/categories  /api/sitemap            │
    │  /api/og-image  /api/health      /, /{category},         │
    │                                  /episode/{id}  (last)   │
    │                                                          │
    │  Exception Handlers:                                     │
    │  InvalidInput→400 │ NotFound→404 │ Angle/other→500       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Locate the HTML shell once
    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from angle import __version__
from angle.config import settings
from angle.database import dispose_engine
from angle.exceptions import AngleError, InvalidInputError, NotFoundError, UpstreamError
from angle.middleware.cors import CORSMiddleware
from angle.middleware.logging import RequestLoggingMiddleware
from angle.middleware.request_id import RequestIDMiddleware, request_id_var
from angle.routes import categories, episodes, health, og_image, render, sitemap
from angle.services.page_renderer import page_renderer

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at DEBUG/INFO
    for name in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "PIL"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup validates configuration and locates the HTML shell; shutdown
    closes pooled database connections. Neither check stops the server:
    JSON routes and health checks keep working without a shell.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Angle backend starting up (environment=%s)...", settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    try:
        page_renderer.shell_loader.resolve()
    except AngleError as e:
        logger.error("%s; page routes will fail until it exists", e.message)

    if settings.episode_cache_enabled:
        logger.info("Episode list cached for %ds", settings.episode_cache_ttl)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Angle backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(message: str, exc: Optional[BaseException] = None, detail: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    The failure envelope. In development it also carries the exception
    type, its context and the formatted stack.
    """
    body: Dict[str, Any] = {"success": False, "error": message}
    if settings.is_development and exc is not None:
        body["detail"] = {"type": type(exc).__name__, **(detail or {})}
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        InvalidInputError            → 400
        NotFoundError                → 404
        UpstreamError                → 500 (logged with context)
        AngleError (base)            → its status_code
        Starlette HTTPException      → its status (405 "Method not allowed", 404 "Not found")
        Exception (fallback)         → 500 generic message
    """

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(request: Request, exc: InvalidInputError):
        logger.warning("[%s] Invalid input: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=400, content=error_body(exc.message, exc, exc.context))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=error_body(exc.message, exc, exc.context))

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error("[%s] Upstream error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(status_code=500, content=error_body(exc.message, exc, exc.context))

    @app.exception_handler(AngleError)
    async def handle_angle_error(request: Request, exc: AngleError):
        logger.error("[%s] %s: %s | Context: %s", request_id_var.get(""), type(exc).__name__, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc, exc.context))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            message = "Method not allowed"
        elif exc.status_code == 404:
            message = "Not found"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: full stack logged server-side, generic message to the client."""
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=error_body("Internal server error", exc))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Angle API",
        description=(
            "Backend for the Angle podcast site: episode and category JSON, "
            "crawler-visible page metadata, preview images and the sitemap."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: CORS → RequestID → Logging → GZip → routes
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(CORSMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(episodes.router)
    app.include_router(categories.router)
    app.include_router(sitemap.router)
    app.include_router(og_image.router)
    app.include_router(health.router)
    # catch-all "/{category}" last
    app.include_router(render.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
