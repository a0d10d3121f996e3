"""FastAPI application entry point.

Exposes a small classification service: GitHub can deliver webhooks to it
to see which execution mode an event would select.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agent_action import __version__
from agent_action.api.health import router as health_router
from agent_action.api.webhooks.github import router as github_router
from agent_action.config import get_settings
from agent_action.core.logging import setup_logging
from agent_action.modes.registry import VALID_MODES

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    settings = get_settings()
    logger.info(
        "Classification service starting",
        extra={
            "version": __version__,
            "environment": settings.environment,
            "modes": sorted(VALID_MODES),
            "signature_checks": bool(settings.github_webhook_secret),
        },
    )
    yield
    logger.info("Classification service stopped")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(
        "Request validation failed",
        extra={"errors": exc.errors(), "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


def create_app() -> FastAPI:
    """Build the app; API docs are only served outside production."""
    settings = get_settings()
    expose_docs = not settings.is_production

    app = FastAPI(
        title="Agent Action",
        description="Trigger classification for the coding assistant GitHub Action",
        version=__version__,
        docs_url="/docs" if expose_docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if expose_docs else None,
        lifespan=lifespan,
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health_router)
    app.include_router(github_router)

    @app.get("/")
    async def root() -> dict:
        return {"name": "Agent Action", "version": __version__}

    return app


app = create_app()
