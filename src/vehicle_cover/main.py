# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Vehicle Cover - Main Application Module."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from beartype import beartype
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api.response_patterns import ErrorResponse
from .api.v1 import router as v1_router
from .core.cache import get_cache
from .core.config import get_settings
from .core.database import get_database
from .core.logging_utils import configure_logging, get_logger
from .services.expiry_sweeper import ExpirySweeper
from .services.notifier import Notifier
from .services.renewal_service import RenewalService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle - startup and shutdown."""
    settings = get_settings()
    configure_logging()
    logger.info("Starting %s in %s mode", settings.app_name, settings.api_env)

    db = get_database()
    await db.connect()
    cache = get_cache()
    await cache.connect()

    sweeper: ExpirySweeper | None = None
    if settings.expiry_sweep_enabled:
        renewals = RenewalService(
            db, cache, Notifier(cache), settings.expiring_renewal_window_days
        )
        sweeper = ExpirySweeper(renewals, settings.expiry_sweep_interval_seconds)
        await sweeper.start()
    app.state.expiry_sweeper = sweeper

    yield

    logger.info("Shutting down %s", settings.app_name)
    if sweeper is not None:
        await sweeper.stop()
    await db.disconnect()
    await cache.disconnect()


def _error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(
            error="Validation failed",
            error_code="VALIDATION_FAILURE",
            details={"errors": jsonable_encoder(exc.errors())},
        ),
    )


async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    # query models are built inside dependencies, outside FastAPI's own validation
    return _error(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(
            error="Validation failed",
            error_code="VALIDATION_FAILURE",
            details={"errors": jsonable_encoder(exc.errors(include_url=False))},
        ),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    response = _error(
        exc.status_code,
        ErrorResponse(error=str(exc.detail), error_code=f"HTTP_{exc.status_code}"),
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error="Internal server error", error_code="INTERNAL_ERROR"),
    )


@beartype
def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Vehicle insurance policy, premium, renewal and claim management",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # Security middleware
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.api_allowed_hosts)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, model_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(v1_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint returning API information."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "operational",
            "environment": settings.api_env,
        }

    return app


# Create the application instance
app = create_app()


@beartype
def main() -> None:
    """Run the main application entry point."""
    settings = get_settings()
    configure_logging()
    uvicorn.run(
        "vehicle_cover.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level="info" if not settings.is_production else "error",
    )


if __name__ == "__main__":
    main()
