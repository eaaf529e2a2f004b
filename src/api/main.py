"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import auth, health, sessions
from core.auth import AuthGateMiddleware
from core.config import Settings, get_settings
from core.security import PasswordHasher
from db.session import PooledSessionProvider, SessionProvider
from services.exceptions import ServiceError
from services.token_service import TokenService

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    provider = app.state.session_provider

    # Startup: create tables for fresh databases (migrations are the normal path)
    if app.state.settings.create_schema_on_startup and hasattr(provider, "create_schema"):
        logger.info("Creating database schema")
        await provider.create_schema()

    yield

    # Shutdown: release pooled connections
    if hasattr(provider, "dispose"):
        await provider.dispose()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {error.get('msg', 'invalid value')}" if loc else error.get("msg", ""))
    return "; ".join(parts)


async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    """Render any service-layer error as its status with an `error` message."""
    if exc.status_code >= 500:
        logger.exception("Internal error: %s", exc.message, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Reject malformed request bodies and parameters with 400."""
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": _format_validation_errors(exc)},
    )


async def database_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Last resort for database failures that escaped the service layer."""
    logger.exception("Unhandled database error", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def http_error_handler(
    _request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """Render routing errors (404, 405) in the same `error` shape as everything else."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    settings: Settings | None = None,
    session_provider: SessionProvider | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration. Defaults to the cached environment settings.
        session_provider: Storage access. Defaults to a pooled engine built from
            settings.database_url; tests pass their own.
    """
    if settings is None:
        settings = get_settings()
    if session_provider is None:
        session_provider = PooledSessionProvider.from_settings(settings)

    token_service = TokenService(
        settings.jwt_secret,
        expires_in=timedelta(days=settings.jwt_expiry_days),
    )

    app = FastAPI(
        title="Poker Tracker API",
        description="Track poker cash-game sessions, profit, and CSV exports.",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Set here rather than in lifespan so the app works under transports that skip it
    app.state.settings = settings
    app.state.session_provider = session_provider
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_service = token_service

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    # Auth gate (innermost, rejects before routing so unknown paths also need a token)
    app.add_middleware(AuthGateMiddleware, token_service=token_service)

    # Security headers middleware (wraps the gate so its 401s get headers too)
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix=API_PREFIX)
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(sessions.router, prefix=API_PREFIX)

    return app
