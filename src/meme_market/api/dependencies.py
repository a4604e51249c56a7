"""API dependencies."""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..config.config import Settings, get_settings
from ..database.connection import create_engine_from_url, create_session_factory
from ..dspy_modules.meme_tagger import MemeTagger, build_tagger
from ..repositories.catalog import CatalogStore
from ..repositories.sql_catalog import SQLCatalogStore
from ..services.meme_service import MemeService
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AppResources:
    """Long-lived objects shared by every request of one application."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    store: CatalogStore
    tagger: MemeTagger


def build_resources(settings: Settings) -> AppResources:
    """
    Create the engine, catalog store and tagger for an application.

    Args:
        settings: Application settings

    Returns:
        AppResources: Shared resources
    """
    engine = create_engine_from_url(settings.database_url, settings.database_echo)
    session_factory = create_session_factory(engine)
    return AppResources(
        engine=engine,
        session_factory=session_factory,
        store=SQLCatalogStore(session_factory),
        tagger=build_tagger(settings),
    )


async def close_resources(resources: AppResources) -> None:
    """Dispose of the database engine."""
    await resources.engine.dispose()
    logger.info("database_engine_disposed")


def get_resources(request: Request) -> AppResources:
    return request.app.state.resources


def get_catalog_store(resources: AppResources = Depends(get_resources)) -> CatalogStore:
    return resources.store


def get_tagger(resources: AppResources = Depends(get_resources)) -> MemeTagger:
    return resources.tagger


def get_meme_service(
    store: CatalogStore = Depends(get_catalog_store),
    tagger: MemeTagger = Depends(get_tagger),
    settings: Settings = Depends(get_settings),
) -> MemeService:
    """
    Build the service for one request.

    Returns:
        MemeService: Service bound to the application's store and tagger
    """
    return MemeService(store, tagger, settings)
