"""
Notewise Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       lifespan() builds the long-lived objects and tears them down.
Who:   uvicorn (`uvicorn notewise.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │  Middleware: RateLimit → RequestID → AccessLog → GZip    │
    │                                                          │
    │  Routes: /api/notes*  /api/trash  /api/ai/*  /health*    │
    │                                                          │
    │  app.state:                                              │
    │    generation_client  GeminiService (retry + usage log)  │
    │    generation_queue   GenerationQueue (workers)          │
    │                                                          │
    │  Handlers: Validation→400  Auth→401  NotFound→404        │
    │            RateLimit→429  DB→500  Generation→503         │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → GenerationConfig (ConfigurationError aborts) →
              GeminiService → GenerationQueue.start()
    Shutdown: GenerationQueue.stop() → dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notewise import __version__
from notewise.config import GenerationConfig, settings
from notewise.database import async_session_factory, dispose_engine
from notewise.exceptions import (
    AuthenticationError,
    DatabaseError,
    GenerationError,
    NotewiseError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from notewise.middleware.logging import RequestLoggingMiddleware
from notewise.middleware.rate_limit import RateLimitMiddleware
from notewise.middleware.request_id import RequestIDLogFilter, RequestIDMiddleware, request_id_var
from notewise.routes import ai, health, notes
from notewise.services.background import GenerationQueue
from notewise.services.gemini_service import GeminiService
from notewise.services.retry import RetryExecutor
from notewise.services.summary_service import SummaryService
from notewise.services.tag_service import TagService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-15T10:30:00 [INFO] notewise.services.tag_service [a1b2c3d4] ...
    The bracketed id is the current request's id ("-" for background work).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "google", "grpc"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

def build_generation_client() -> GeminiService:
    """Client from settings. Raises ConfigurationError on a missing key or bad bounds."""
    config = GenerationConfig.from_settings(settings)
    retry = RetryExecutor(
        max_attempts=settings.retry_max_attempts,
        base_delay_ms=settings.retry_base_delay_ms,
    )
    return GeminiService(config, retry_executor=retry)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Notewise Backend %s starting up...", __version__)

    client = build_generation_client()
    app.state.generation_client = client

    queue = GenerationQueue(
        SummaryService(client),
        TagService(client),
        async_session_factory,
        maxsize=settings.generation_queue_size,
        workers=settings.generation_workers,
    )
    queue.start()
    app.state.generation_queue = queue

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Notewise Backend shutting down...")
    await queue.stop()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, exc: NotewiseError, details=None, headers=None):
    content = {"error": error, "message": exc.message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map NotewiseError subclasses to HTTP responses.

    Every body has the shape {error, message, details?, request_id}. Internal
    context (SQL, provider errors) is logged and never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return _error_response(400, "validation_error", exc, details=exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(401, "unauthorized", exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc,
            details=exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(GenerationError)
    async def handle_generation_error(request: Request, exc: GenerationError):
        logger.error("Generation error (%s): %s", exc.kind.value, exc.message)
        return _error_response(503, "generation_error", exc, details={"kind": exc.kind.value})

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return _error_response(500, "server_error", exc)

    @app.exception_handler(NotewiseError)
    async def handle_notewise_error(request: Request, exc: NotewiseError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return _error_response(500, "server_error", exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": request_id_var.get(""),
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Notewise API",
        description=(
            "Note-taking backend with AI-generated summaries and tags "
            "powered by Google Gemini."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Last added runs first: RateLimit → RequestID → AccessLog → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(ai.router)
    app.include_router(health.router)

    return app


app = create_app()
