from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from buildsync.app import App
from buildsync.config import Config
from buildsync.errors import TransientError, UserError
from buildsync.web.error_handlers import (
    general_exception_handler,
    http_exception_handler,
    request_validation_handler,
    transient_error_handler,
    user_error_handler,
)
from buildsync.web.middleware import add_cors_and_timing
from buildsync.web.routers import build_numbers_router, metadata_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        # Store app instance and config in app state
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Build Number Sync API",
        version=config.api_version,
        summary="Synchronized, ever-increasing build numbers per bundle and platform",
        lifespan=lifespan,
    )

    add_cors_and_timing(app, config.cors_origins)

    app.include_router(build_numbers_router)
    app.include_router(metadata_router)

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(TransientError, transient_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    return app
