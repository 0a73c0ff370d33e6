"""
FastAPI application entry point for the Meetboard backend.

This module initializes the FastAPI application with:
- CORS middleware for the web frontend
- Exception handlers for consistent error responses
- Logging configuration
- Event, moderation and past-event routers under /api

Environment Variables:
    MEETBOARD_DB_URL: Database URL (default: SQLite file in the working directory)
    MEETBOARD_ENV: Environment (production/development, default: development)
    MEETBOARD_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    CORS_ORIGINS: Comma-separated allowed origins
"""

from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from backend.src.config.settings import get_settings
from backend.src.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RepositoryError,
    ServiceError,
    ValidationError as ServiceValidationError,
)
from backend.src.utils.logging_config import init_logging, get_logger


# Most specific first
SERVICE_ERROR_STATUS = (
    (ServiceValidationError, status.HTTP_400_BAD_REQUEST, "Validation Error"),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN, "Forbidden"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (ConflictError, status.HTTP_409_CONFLICT, "Conflict"),
    (RepositoryError, status.HTTP_503_SERVICE_UNAVAILABLE, "Storage Unavailable"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Log effective moderation settings
    - Shutdown: Dispose database connections

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    # Startup
    logger = get_logger("api")
    settings = get_settings()
    logger.info(
        "Starting Meetboard backend",
        extra={
            "events_require_approval": settings.events_require_approval,
            "past_event_sweep_enabled": settings.past_event_sweep_enabled,
        }
    )

    yield

    # Shutdown
    from backend.src.db.database import dispose_engine
    dispose_engine()
    logger.info("Shutting down Meetboard backend")


# Initialize logging before creating app
init_logging()

# Create FastAPI application
app = FastAPI(
    title="Meetboard API",
    description="Backend API for public gathering listings: submission and moderation, "
                "recurring schedules and the past-event gallery.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Configure CORS middleware for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers


@app.exception_handler(ServiceError)
async def service_exception_handler(
    request: Request, exc: ServiceError
) -> JSONResponse:
    """
    Handle service errors not translated by the endpoint.

    Args:
        request: HTTP request
        exc: ServiceError subclass

    Returns:
        JSON response with the mapped status code
    """
    status_code, label = status.HTTP_500_INTERNAL_SERVER_ERROR, "Service Error"
    for error_type, code, name in SERVICE_ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code, label = code, name
            break

    logger = get_logger("db" if isinstance(exc, RepositoryError) else "api")
    logger.warning(
        label,
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": label,
            "message": str(exc),
            "detail": str(exc),
        }
    )


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Args:
        request: HTTP request
        exc: Pydantic ValidationError

    Returns:
        JSON response with validation error details
    """
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors.

    Args:
        request: HTTP request
        exc: SQLAlchemy exception

    Returns:
        JSON response with database error message
    """
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    Args:
        request: HTTP request
        exc: Unhandled exception

    Returns:
        JSON response with generic error message
    """
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status and application information
    """
    return {
        "status": "healthy",
        "service": "meetboard-backend",
        "version": "1.0.0",
    }


# API routers
from backend.src.api import events, past_events
from backend.src.api.admin import events_router as admin_events_router

app.include_router(events.router, prefix="/api")
app.include_router(admin_events_router, prefix="/api/admin")
app.include_router(past_events.router, prefix="/api")
