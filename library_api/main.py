"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app(settings) returns a configured app
   - The Settings object is passed in explicitly and handed on to the
     session middleware and the Google identity adapter
   - Each app builds its own engine and session factory from those
     settings (app.state.engine, app.state.session_factory)
   - Tests build their own app from their own Settings

2. Lifespan Events
   - startup: clear out expired sessions
   - shutdown: dispose of this app's database engine

3. Middleware Stack (outermost first)
   - CORS: Allow cross-origin requests with credentials
   - Server-side sessions: request.session backed by the sessions table
   - Rate limiting: slowapi default limits

4. Exception Handlers
   - Request parsing errors -> 400 in the API envelope
   - Database and unexpected errors -> opaque 500, logged with traceback
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from library_api.config import Settings, get_settings
from library_api.database import build_engine, build_session_factory
from library_api.dependencies import DbSession, OptionalPrincipal
from library_api.routers import auth_router, authors_router, books_router
from library_api.services.identity import GoogleIdentityAdapter
from library_api.services.outcomes import ErrorKind, Outcome, render
from library_api.services.rate_limiter import configure_limiter, rate_limit_exceeded_handler
from library_api.services.sessions import DatabaseSessionStore, ServerSessionMiddleware
from library_api.services.validation import violations_from_request_errors

logger = logging.getLogger(__name__)

DOCS_URL = "/api-docs"


def configure_logging(settings: Settings) -> None:
    """Configure root logging once, from LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield runs on startup, code after yield on shutdown.
    """
    settings: Settings = app.state.settings

    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")
    logger.info(f"API version: {settings.api_version}")
    if not app.state.identity.is_configured:
        logger.warning("Google OAuth credentials missing - login disabled")

    try:
        purged = await run_in_threadpool(app.state.session_store.purge_expired)
        if purged:
            logger.info(f"Removed {purged} expired sessions")
    except SQLAlchemyError as e:
        logger.warning(f"Could not purge expired sessions: {e}")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    app.state.engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================
def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration for this app instance (defaults to the
            environment-derived settings)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="""
## Library Catalog API

A RESTful API for managing authors and books.

### Features
- **Authors**: Full CRUD; an author with books cannot be deleted
- **Books**: Full CRUD; every book references an existing author

### Authentication
Log in with Google at `/auth/google`. Reading is public; creating,
updating and deleting require a logged-in session (cookie).

### Responses
Every JSON body has the shape `{success, data | error | message}`.
Validation failures list each problem under `errors`.
        """,
        version=settings.api_version,
        docs_url=DOCS_URL,
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.identity = GoogleIdentityAdapter(settings)
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.session_store = DatabaseSessionStore(app.state.session_factory)

    # -------------------------------------------------------------------------
    # Middleware (added innermost first)
    # -------------------------------------------------------------------------
    app.state.limiter = configure_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(ServerSessionMiddleware, settings=settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        # Session cookies travel with cross-origin requests
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed JSON and similar parsing errors use the API envelope."""
        outcome = Outcome.failure(
            ErrorKind.VALIDATION,
            "Validation failed",
            violations_from_request_errors(exc.errors()),
        )
        return render(outcome)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """Database errors escaping a handler. Details stay in the log."""
        logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Server Error"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all: never leak internals to the client."""
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Server Error"},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    app.include_router(authors_router, prefix=settings.api_prefix)
    app.include_router(books_router, prefix=settings.api_prefix)
    app.include_router(auth_router, prefix=settings.api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and the database answers.",
    )
    def health_check(db: DbSession) -> JSONResponse:
        """Used by load balancers and container probes."""
        try:
            db.execute(text("SELECT 1"))
            database = "ok"
        except SQLAlchemyError as e:
            logger.warning(f"Health check database probe failed: {e}")
            database = "unavailable"

        healthy = database == "ok"
        return JSONResponse(
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": healthy,
                "status": "healthy" if healthy else "degraded",
                "app": settings.app_name,
                "version": settings.api_version,
                "database": database,
                "authentication": {"google": settings.google_configured},
                "rate_limiting": {
                    "enabled": settings.rate_limit_enabled,
                    "default_limit": settings.rate_limit_default,
                    "write_limit": settings.rate_limit_write,
                },
            },
        )

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message with the caller's authentication status.",
    )
    def root(principal: OptionalPrincipal) -> dict:
        """Root endpoint with API information."""
        auth_status = "Authenticated" if principal else "Not Authenticated"
        user_info = f" as {principal.display_name}" if principal and principal.display_name else ""
        return {
            "success": True,
            "message": (
                f"Hello from the {settings.app_name}! Authentication Status: "
                f"{auth_status}{user_info}. Visit {DOCS_URL} for documentation."
            ),
            "authenticated": principal is not None,
            "user": principal.display_name if principal else None,
            "version": settings.api_version,
            "docs": DOCS_URL,
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn library_api.main:app
app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m library_api.main runs a reloading dev server

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "library_api.main:app",
        host=app.state.settings.host,
        port=app.state.settings.port,
        reload=app.state.settings.debug,
    )
