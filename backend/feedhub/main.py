"""
FeedHub Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() validates settings, builds every collaborator once,
       attaches them to app.state, and registers middleware, exception
       handlers and routers.
Who:   uvicorn (`uvicorn feedhub.main:app`) and the test suite
       (`create_app(test_settings)`).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: Request ID → Logging → GZip → CORS          │
    │                                                          │
    │  Routes: /auth/*   /posts/*   /media/*   /health         │
    │             │          │                                 │
    │        require_auth (AuthorizationGate → TokenService)   │
    │                                                          │
    │  app.state: settings, database, object_store, hasher,    │
    │             token_service, user_service, post_service,   │
    │             gate, reaper                                 │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → optional schema creation → storage layout → reaper
    Shutdown: reaper stop → dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from feedhub import __version__
from feedhub.config import Settings, settings as default_settings
from feedhub.database import Database
from feedhub.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    FeedHubError,
    NotFoundError,
    StorageBackendError,
    ValidationError,
)
from feedhub.middleware.auth import AuthorizationGate
from feedhub.middleware.logging import RequestLoggingMiddleware
from feedhub.middleware.request_id import RequestIDMiddleware, request_id_var
from feedhub.routes import auth, health, media, posts
from feedhub.scheduler import TokenReaper
from feedhub.services.password_service import PasswordHasher
from feedhub.services.post_service import PostService
from feedhub.services.storage_service import LocalObjectStore
from feedhub.services.token_service import TokenService
from feedhub.services.user_service import UserService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once at startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    state = app.state
    settings: Settings = state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("FeedHub Backend %s starting up...", __version__)

    if settings.auto_create_schema:
        await state.database.create_all()
        logger.info("Database schema ensured (AUTO_CREATE_SCHEMA)")

    state.object_store.ensure_layout()
    logger.info("Media storage: %s", state.object_store.storage_root)

    if settings.reaper_enabled:
        state.reaper.start()
    else:
        logger.warning("Token reaper disabled; expired sessions are only deactivated on use")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("FeedHub Backend shutting down...")
    state.reaper.shutdown()
    await state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, **extra) -> dict:
    body = {"error": error, "message": message}
    body.update(extra)
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400 validation_error
        ConflictError                            → 400 conflict
        AuthenticationError (all reasons)        → 401 authentication_error
        AuthorizationError                       → 403 forbidden
        NotFoundError                            → 404 not_found
        StorageBackendError                      → 500 storage_error
        FeedHubError (base)                      → 500 server_error
        Exception (fallback)                     → 500 internal_server_error

    Exception context is logged server-side and never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("Validation error: %s", exc.message)
        extra = {"field": exc.field} if exc.field else {}
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, **extra),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("Conflict: %s", exc.message)
        return JSONResponse(status_code=400, content=_error_body("conflict", exc.message))

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("authentication_error", exc.message, reason=exc.reason),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        logger.info("Forbidden: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(status_code=403, content=_error_body("forbidden", exc.message))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc.message))

    @app.exception_handler(StorageBackendError)
    async def handle_storage_error(request: Request, exc: StorageBackendError):
        logger.error("Storage error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("storage_error", exc.message))

    @app.exception_handler(FeedHubError)
    async def handle_feedhub_error(request: Request, exc: FeedHubError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Raises:
        ValueError: configuration is unusable (e.g. no JWT_SECRET); the
        process must not start without a signing secret.
    """
    settings = settings or default_settings
    settings.validate_required_for_production()

    app = FastAPI(
        title="FeedHub API",
        description=(
            "Social feed backend: accounts with multi-device bearer-token sessions, "
            "and a posts feed with media, likes and comments."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Collaborators ─────────────────────────────────────────────────────
    database = Database(settings)
    object_store = LocalObjectStore(settings.storage_root, base_url=settings.media_base_url)
    hasher = PasswordHasher(bcrypt_rounds=settings.bcrypt_rounds)
    token_service = TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_days=settings.token_ttl_days,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.object_store = object_store
    app.state.hasher = hasher
    app.state.token_service = token_service
    app.state.user_service = UserService(
        hasher,
        object_store,
        min_password_length=settings.min_password_length,
        max_profile_image_size=settings.max_profile_image_size,
    )
    app.state.post_service = PostService(object_store, max_media_size=settings.max_media_size)
    app.state.gate = AuthorizationGate(token_service)
    app.state.reaper = TokenReaper(
        database,
        token_service,
        interval_minutes=settings.token_sweep_interval_minutes,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "WWW-Authenticate"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(media.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: `uvicorn feedhub.main:app`
app = create_app()
