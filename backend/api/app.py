"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
    PromptGenError,
    ValidationError,
)
from .config import get_settings
from .models.errors import ErrorResponse
from .dependencies import get_container
from .routes import account, admin, health, users

logger = logging.getLogger(__name__)

ERROR_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (ExternalServiceError, status.HTTP_502_BAD_GATEWAY),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Starts the daily maintenance scheduler when enabled and stops it on
    shutdown.
    """
    api_settings = get_settings()
    container = get_container()
    logger.info(f"Starting {container.settings.app_name} API on {api_settings.host}:{api_settings.port}")

    scheduler = None
    if container.settings.enable_scheduler:
        scheduler = container.scheduler
        scheduler.start()

    yield

    if scheduler is not None:
        await scheduler.stop()
    logger.info(f"Shutting down {container.settings.app_name} API")


async def handle_app_error(request: Request, exc: PromptGenError) -> JSONResponse:
    """Map application errors to HTTP responses."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break
    else:
        logger.error(f"Unhandled application error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Mbotix Prompt Generate API",
        description="Accounts, tiers and subscriptions for the prompt generator",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        responses={500: {"model": ErrorResponse, "description": "Application error"}},
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(PromptGenError, handle_app_error)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(account.router, prefix="/api/account", tags=["account"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    return app


# Application instance for uvicorn
app = create_app()
