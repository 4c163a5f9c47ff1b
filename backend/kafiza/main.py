"""
Kafiza Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn kafiza.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌────────────┐ ┌──────┐ ┌──────────┐  │
    │  │  Req ID  │→│ Access Log │→│ GZip │→│   CORS   │  │
    │  └──────────┘ └────────────┘ └──────┘ └──────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌───────────┐ ┌────────────┐ ┌──────────┐ ┌─────┐  │
    │  │ /farmers  │ │ /roasters  │ │ payments │ │health│ │
    │  └───────────┘ └────────────┘ └──────────┘ └─────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ Store→503    │   │
    │  │ Method→405     │ Internal/unexpected→500     │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (missing store settings abort startup)

    Shutdown:
    1. Dispose the cached database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kafiza import __version__
from kafiza.config import settings
from kafiza.database import connection_manager
from kafiza.exceptions import (
    ConfigurationError,
    InternalError,
    KafizaError,
    NotFoundError,
    StoreConnectionError,
    ValidationError,
)
from kafiza.middleware.logging import RequestLoggingMiddleware
from kafiza.middleware.request_id import RequestIDMiddleware, request_id_var
from kafiza.routes import farmers, health, payments, roasters
from kafiza.routes.methods import route_methods
from kafiza.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every request/statement at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, then configuration validation. A missing DATABASE_URL
    or DATABASE_NAME raises ConfigurationError and the server never starts.

    Shutdown: close every pooled connection.

    The database connection itself is opened lazily by the first request
    that needs it.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Kafiza Backend %s starting up...", __version__)

    try:
        settings.validate_required()
    except ConfigurationError as e:
        logger.critical("Configuration error: %s", e.message)
        logger.critical("Fix the configuration and restart the server.")
        raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Kafiza Backend shutting down...")
    await connection_manager.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Builds the failure envelope with the current request ID."""
    body = ErrorResponse(
        error=error,
        message=message,
        details=details,
        request_id=request_id_var.get(""),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def allowed_methods(request: Request, exc: StarletteHTTPException) -> str:
    """Every method registered for the request path, plus whatever Starlette reported."""
    methods = route_methods.methods_for(request.url.path)
    reported = (exc.headers or {}).get("Allow", "")
    methods.update(m.strip().upper() for m in reported.split(",") if m.strip())
    return ", ".join(sorted(methods))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the failure envelope.

    Handler hierarchy:
        ValidationError          → 400 Bad Request (client can fix the input)
        RequestValidationError   → 400 Bad Request (body/query did not parse)
        NotFoundError            → 404 Not Found
        HTTPException 404/405    → routing failures, 405 carries Allow
        StoreConnectionError     → 503 Service Unavailable
        InternalError            → 500 Internal Server Error
        KafizaError (base)       → 500 Internal Server Error
        Exception (fallback)     → 500 Internal Server Error

    Handlers never put stack traces, SQL or driver messages in the response.
    Details are logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, details=exc.context or None)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        message = "Invalid request"
        if errors:
            first = errors[0]
            message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return error_response(400, "validation_error", message, details={"errors": errors})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return error_response(
                405,
                "method_not_allowed",
                f"Method {request.method} is not allowed on {request.url.path}",
                headers={"Allow": allowed_methods(request, exc)},
            )
        if exc.status_code == 404:
            return error_response(404, "not_found", f"Route {request.url.path} not found")
        return error_response(exc.status_code, "http_error", str(exc.detail), headers=exc.headers)

    @app.exception_handler(StoreConnectionError)
    async def handle_store_connection_error(request: Request, exc: StoreConnectionError):
        logger.error("[%s] Store unavailable: %s", request_id_var.get(""), exc.context)
        return error_response(503, "service_unavailable", exc.message)

    @app.exception_handler(InternalError)
    async def handle_internal_error(request: Request, exc: InternalError):
        logger.error("[%s] Internal error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(500, "server_error", InternalError().message)

    @app.exception_handler(KafizaError)
    async def handle_kafiza_error(request: Request, exc: KafizaError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return error_response(500, "server_error", InternalError().message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers into one app."""
    app = FastAPI(
        title="Kafiza API",
        description=(
            "Marketplace backend connecting Brazilian coffee farmers with roasters. "
            "CRUD, search and soft delete for farmers and roasters, plus payment intents."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(farmers.router)
    app.include_router(roasters.router)
    app.include_router(payments.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
