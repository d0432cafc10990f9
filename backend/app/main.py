"""
Disc Rescue Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers.
Who:   Run by uvicorn (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────────┐ ┌──────────┐ ┌──────────┐             │
    │  │  Rate Limit  │→│ Req ID   │→│ Logging  │→ GZip → CORS │
    │  └──────────────┘ └──────────┘ └──────────┘             │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────────────┐ ┌────────────────────┐ ┌────────┐ │
    │  │ /api/twilio/…    │ │ /api/vision/…      │ │/health │ │
    │  │ /api/phone-opt-… │ │                    │ │        │ │
    │  │ /api/sms         │ │                    │ │        │ │
    │  └──────────────────┘ └────────────────────┘ └────────┘ │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ Signature→403 │ DB→500 │ Messaging→502 │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check (logged, not fatal)
    Shutdown: close the catalog HTTP client, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.dependencies import close_clients
from app.exceptions import (
    DatabaseError,
    DiscRescueError,
    MessagingError,
    NotFoundError,
    ValidationError,
    WebhookSignatureError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, sms, vision

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2024-01-15T12:00:00 [INFO] app.services.sms_service: +15551234567 opted in
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("twilio.http_client").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Disc Rescue Backend starting up...")

    # Not fatal: /health and the image endpoint still work without Twilio
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("Catalog API: %s", settings.catalog_api_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Disc Rescue Backend shutting down...")
    await close_clients()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    """JSON error body shared by every handler; `details` is omitted when empty."""
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

        ValidationError, RequestValidationError → 400
        WebhookSignatureError                   → 403, empty body
        NotFoundError                           → 404
        DatabaseError                           → 500, generic message
        MessagingError                          → 502
        DiscRescueError (base)                  → 500
        Exception (fallback)                    → 500

    Context dicts of server-side errors are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        return error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        logger.warning("Rejected %s %s: %d invalid fields", request.method, request.url.path, len(errors))
        return error_response(400, "validation_error", "Request validation failed.", {"errors": errors})

    @app.exception_handler(WebhookSignatureError)
    async def handle_webhook_signature_error(request: Request, exc: WebhookSignatureError):
        logger.warning("%s | Context: %s", exc.message, exc.context)
        return Response(status_code=403)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(MessagingError)
    async def handle_messaging_error(request: Request, exc: MessagingError):
        logger.error("Messaging error: %s | Context: %s", exc.message, exc.context)
        return error_response(502, "messaging_error", exc.message)

    @app.exception_handler(DiscRescueError)
    async def handle_application_error(request: Request, exc: DiscRescueError):
        logger.error("%s: %s | Context: %s", type(exc).__name__, exc.message, exc.context)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "internal_server_error", "Something went wrong on our side.")



# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Disc Rescue Network API",
        description=(
            "Reads owner phone numbers, brands, molds and colors off photos of found "
            "discs, and runs the SMS opt-in workflow that tells owners their discs "
            "are waiting to be claimed."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware runs in reverse order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(sms.router)
    app.include_router(vision.router)
    app.include_router(health.router)

    return app


app = create_app()
