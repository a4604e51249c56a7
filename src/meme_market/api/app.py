"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from ..config.config import Settings, get_settings
from ..database.connection import init_models
from ..utils.logging import get_logger, setup_logging
from .dependencies import build_resources, close_resources
from .middleware.error_handler import register_exception_handlers
from .routers import health, memes

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the API application.

    Args:
        settings: Application settings, the cached settings when None

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    setup_logging(
        settings.log_level,
        settings.log_json,
        settings.log_file,
        app=settings.app_name,
        env=settings.app_env,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "starting_application",
            app_name=settings.app_name,
            version=settings.app_version,
            env=settings.app_env,
        )
        resources = build_resources(settings)
        await init_models(resources.engine)
        app.state.resources = resources
        try:
            yield
        finally:
            await close_resources(resources)
            logger.info("application_stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Search, trending and tag statistics for a meme marketplace",
        version=settings.app_version,
        docs_url=settings.api_docs_url,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
    app.include_router(memes.router, prefix=f"{settings.api_prefix}/v1/memes", tags=["memes"])
    app.mount("/metrics", make_asgi_app())

    return app


app = create_app()
