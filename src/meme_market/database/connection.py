"""Database connection module."""

from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ..config.config import settings
from ..models.base import Base
from ..models.db_models import memes  # noqa: F401  registers the catalog tables
from ..utils.logging import get_logger

logger = get_logger(__name__)


def create_engine_from_url(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create the async engine for the catalog database.

    Args:
        database_url: SQLAlchemy URL, defaults to ``settings.database_url``
        echo: Whether to log SQL, defaults to ``settings.database_echo``

    Returns:
        AsyncEngine: SQLAlchemy async engine
    """
    url = database_url or settings.database_url
    engine_kwargs: Dict[str, Any] = {
        "echo": settings.database_echo if echo is None else echo,
        "pool_pre_ping": True,
    }

    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        # A private in-memory database only lives as long as its connection
        if ":memory:" in url:
            engine_kwargs["poolclass"] = StaticPool

    logger.info("creating_engine", url=url.split("@")[-1])
    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Build the session factory handed to the catalog store.

    Args:
        engine: Async engine

    Returns:
        async_sessionmaker: Factory of ``AsyncSession`` objects
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create the catalog tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("catalog_tables_ready")


async def check_connection(engine: AsyncEngine) -> bool:
    """
    Run a trivial query to verify the database is reachable.

    Returns:
        bool: True when the query succeeds

    Raises:
        SQLAlchemyError: If the database cannot be reached
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True
