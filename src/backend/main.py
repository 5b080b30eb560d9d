"""
Memes Muthyam Backend Application

Voting and blog backend for the fan site, with live vote counters pushed
to connected browsers over WebSockets.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.v1 import router as api_v1_router
from api.v1.realtime import router as realtime_router
from core.config import settings
from core.errors import UnknownError, ValidationError, VotingAppError
from core.events import create_start_app_handler, create_stop_app_handler
from core.middleware import SecurityHeadersMiddleware

logger = structlog.get_logger(__name__)

_HTTP_ERROR_REASONS = {
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    429: "rate_limited",
    503: "service_unavailable",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    await create_start_app_handler(app)()
    yield
    # Shutdown
    await create_stop_app_handler(app)()


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem as a readable sentence."""
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(application: FastAPI) -> None:
    """Render every error as {"success": false, "message": ..., "reason": ...}."""

    @application.exception_handler(VotingAppError)
    async def voting_app_error_handler(request: Request, exc: VotingAppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError(_validation_message(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": str(exc.detail),
                "reason": _HTTP_ERROR_REASONS.get(exc.status_code, "http_error"),
            },
            headers=getattr(exc, "headers", None),
        )

    # Add global exception handler to ensure CORS headers are present on error responses
    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler to catch unhandled exceptions.

        The response never includes the exception's text.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(status_code=500, content=UnknownError().to_dict())


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title=settings.APP_NAME,
        description="Contestant voting and blog API with real-time updates",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # Add middleware (order matters - processed in reverse)
    # 1. Security headers - added to all responses
    application.add_middleware(SecurityHeadersMiddleware)

    # 2. CORS - restricted to specific methods and headers
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "X-Admin-Key",
            "X-Request-ID",
        ],
        expose_headers=[
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
        ],
    )

    # 3. GZip compression for responses
    application.add_middleware(GZipMiddleware, minimum_size=1000)

    register_exception_handlers(application)

    # Include routers
    application.include_router(api_v1_router, prefix="/api/v1")
    application.include_router(realtime_router, tags=["Realtime"])

    @application.get("/health", tags=["Health"])
    @application.get("/api/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint for load balancers and monitoring."""
        return {"status": "healthy", "service": "muthyam-api", "votingMode": settings.VOTING_MODE}

    # The static site owns "/" when configured; mounted last so API routes win
    if settings.STATIC_DIR and Path(settings.STATIC_DIR).is_dir():
        application.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
    else:

        @application.get("/", tags=["Root"])
        async def root() -> dict[str, str]:
            """Root endpoint with API information."""
            return {
                "name": settings.APP_NAME,
                "version": "1.0.0",
                "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
            }

    return application


app = create_application()
