"""
Application factory for creating FastAPI app instances.

This module provides functions for creating and configuring the FastAPI application
with all necessary middleware, routers, exception handlers and dependencies.
"""

from contextlib import asynccontextmanager
from typing import Optional

from domain.exceptions import MemoriesError, UnavailableError
from domain.value_objects.enums import ErrorKind
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from schemas import ErrorResponse
from services.memory_store import MemoryStore
from slowapi.errors import RateLimitExceeded

from core import get_logger, get_settings

logger = get_logger("AppFactory")


async def memories_error_handler(request: Request, exc: MemoriesError) -> JSONResponse:
    """Render domain errors as {"detail", "kind"} with the error's status code."""
    if isinstance(exc, UnavailableError):
        logger.warning(f"{request.method} {request.url.path} -> 503 (store unavailable)")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Too many posts from one address. Headers carry the retry hints."""
    body = ErrorResponse(detail=f"Rate limit exceeded: {exc.detail}", kind=ErrorKind.RATE_LIMITED.value)
    response = JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=body.model_dump())
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are user-correctable input errors, reported as 400."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request body"
    body = ErrorResponse(detail=message, kind=ErrorKind.VALIDATION.value)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log internal failures in full, return only a generic message."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    body = ErrorResponse(detail="Internal server error", kind=ErrorKind.INTERNAL.value)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())


def create_app(memory_store: Optional[MemoryStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        memory_store: Store to serve from (default: built from settings at startup)

    Returns:
        Configured FastAPI application instance
    """
    from fastapi.middleware.cors import CORSMiddleware
    from routers import health, memories

    settings = get_settings()

    # Create lifespan context manager
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for application startup and shutdown."""
        # Startup
        logger.info("🚀 Application startup...")

        store = memory_store or MemoryStore.from_settings(settings)
        try:
            await store.connect()
        except UnavailableError:
            # Requests will retry the connection; until then they get 503s
            logger.warning("⚠️  Document store unreachable at startup, serving 503 until it comes back")

        # Store in app state for dependency injection
        app.state.memory_store = store

        logger.info("✅ Application startup complete")

        yield

        # Shutdown
        logger.info("🛑 Application shutdown...")
        await store.close()
        logger.info("✅ Application shutdown complete")

    # Create app with lifespan
    app = FastAPI(title="Memories API", lifespan=lifespan)
    app.state.limiter = memories.limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
    app.add_exception_handler(MemoriesError, memories_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    # CORS middleware
    allowed_origins = settings.get_cors_origins()
    logger.info("🔒 CORS Configuration:")
    logger.info(f"   Allowed origins: {allowed_origins}")
    logger.info("   💡 To add more origins, set FRONTEND_URL in .env")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(memories.router, prefix="/memories", tags=["Memories"])

    return app
