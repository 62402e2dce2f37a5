"""
PetNest Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn petnest.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐   │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │   │
    │  └──────────────┘ └──────────┘ └─────────────────┘   │
    │                                                      │
    │  Routes:                                             │
    │  /api/auth  /api/pets  /api/adoptions  /api/users    │
    │  /health                                             │
    │                                                      │
    │  Exception Handlers:                                 │
    │  Validation/InvalidState/Duplicate→400  Auth→401     │
    │  Unauthorized→403  NotFound→404  RateLimit→429       │
    │  Database→500                                        │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, log startup complete
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from petnest import __version__
from petnest.config import settings
from petnest.database import dispose_engine
from petnest.exceptions import (
    AuthenticationError,
    DatabaseError,
    DuplicateApplicationError,
    InvalidStateError,
    NotFoundError,
    PetNestError,
    RateLimitExceededError,
    UnauthorizedError,
    ValidationError,
)
from petnest.middleware.logging import RequestLoggingMiddleware
from petnest.middleware.rate_limit import RateLimitMiddleware
from petnest.middleware.request_id import RequestIDMiddleware, request_id_var
from petnest.routes import adoptions, auth, health, pets, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-01T12:00:00 [INFO] petnest.access: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("PetNest Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        # Keep serving: health checks still report the database state

    logger.info(
        "Adoption policy: allow_redecision=%s auto_reject_on_approval=%s",
        settings.adoption_allow_redecision,
        settings.adoption_auto_reject_on_approval,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("PetNest Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    exc: PetNestError,
    include_details: bool = True,
    headers: dict | None = None,
) -> JSONResponse:
    content = {
        "error": error,
        "message": exc.message,
        "request_id": request_id_var.get(""),
    }
    if include_details and exc.context:
        content["details"] = exc.context
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map PetNestError subclasses to HTTP responses.

    Handler hierarchy:
        ValidationError            → 400 validation_error
        InvalidStateError          → 400 invalid_state
        DuplicateApplicationError  → 400 duplicate_application
        AuthenticationError        → 401 authentication_error
        UnauthorizedError          → 403 forbidden
        NotFoundError              → 404 not_found
        RateLimitExceededError     → 429 rate_limit_exceeded
        DatabaseError              → 500 server_error (generic message)
        PetNestError (base)        → 500 server_error
        Exception (fallback)       → 500 internal_server_error

    Internal details (stack traces, SQL) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc)

    @app.exception_handler(InvalidStateError)
    async def handle_invalid_state(request: Request, exc: InvalidStateError):
        logger.warning("[%s] Invalid state: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "invalid_state", exc)

    @app.exception_handler(DuplicateApplicationError)
    async def handle_duplicate(request: Request, exc: DuplicateApplicationError):
        return _error_response(400, "duplicate_application", exc)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(request: Request, exc: AuthenticationError):
        return _error_response(
            401,
            "authentication_error",
            exc,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        logger.warning("[%s] Forbidden: %s", request_id_var.get(""), exc.message)
        return _error_response(403, "forbidden", exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc, include_details=False)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(PetNestError)
    async def handle_petnest_error(request: Request, exc: PetNestError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s", rid, exc.message)
        return JSONResponse(
            status_code=500,
            content={"error": "server_error", "message": exc.message, "request_id": rid},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="PetNest API",
        description=(
            "Pet adoption platform: browse pets, apply to adopt, and let shelter "
            "admins review applications while pet availability stays in sync."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS
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

    app.include_router(auth.router)
    app.include_router(pets.router)
    app.include_router(adoptions.router)
    app.include_router(users.router)
    app.include_router(health.router)

    return app


app = create_app()
