"""SQLAlchemy implementation of the catalog store."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from sqlalchemy import Select, func, or_, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..exceptions import MemeNotFoundError, StoreUnavailableError
from ..models.db_models.memes import MemeDB, MemeTagDB
from ..models.meme import ImageMetadata, MemeRecord, MemeSort
from ..utils.clock import ensure_utc
from ..utils.logging import get_logger
from .catalog import CatalogFilter, CatalogStore

logger = get_logger(__name__)

_ORDERINGS = {
    MemeSort.RECENT: (MemeDB.created_at.desc(), MemeDB.id.asc()),
    MemeSort.POPULAR: (MemeDB.upvotes.desc(), MemeDB.downloads.desc(), MemeDB.id.asc()),
    MemeSort.TRENDING: (MemeDB.upvotes.desc(), MemeDB.created_at.desc(), MemeDB.id.asc()),
}


def _tag_substring(term: str) -> Any:
    """Condition: some tag of the meme contains ``term``."""
    return MemeDB.id.in_(
        select(MemeTagDB.meme_id).where(
            func.lower(MemeTagDB.tag).contains(term.lower(), autoescape=True)
        )
    )


def _description_substring(term: str) -> Any:
    return func.lower(MemeDB.description).contains(term.lower(), autoescape=True)


def apply_filter(query: Select, catalog_filter: Optional[CatalogFilter]) -> Select:
    """
    Translate a ``CatalogFilter`` into WHERE clauses.

    Args:
        query: Select over ``MemeDB``
        catalog_filter: Filter to translate

    Returns:
        Select: The filtered query
    """
    if catalog_filter is None:
        return query

    if catalog_filter.tags is not None:
        query = query.where(
            MemeDB.id.in_(
                select(MemeTagDB.meme_id).where(MemeTagDB.tag.in_(catalog_filter.tags))
            )
        )
    if catalog_filter.tag_contains is not None:
        query = query.where(_tag_substring(catalog_filter.tag_contains))
    if catalog_filter.description_contains is not None:
        query = query.where(_description_substring(catalog_filter.description_contains))
    if catalog_filter.text_terms is not None:
        terms = list(catalog_filter.text_terms)
        query = query.where(
            or_(
                *[_description_substring(term) for term in terms],
                *[_tag_substring(term) for term in terms],
            )
        )
    if catalog_filter.created_since is not None:
        query = query.where(MemeDB.created_at >= ensure_utc(catalog_filter.created_since))
    return query


def to_record(row: MemeDB) -> MemeRecord:
    """Convert a database row into a domain record."""
    return MemeRecord(
        id=row.id,
        image_url=row.image_url,
        storage_id=row.storage_id,
        tags=[tag.tag for tag in row.tags],
        description=row.description or "",
        upvotes=row.upvotes,
        downloads=row.downloads,
        created_at=ensure_utc(row.created_at),
        image_metadata=ImageMetadata(**row.image_metadata) if row.image_metadata else None,
    )


class SQLCatalogStore(CatalogStore):
    """Catalog store backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize the store.

        Args:
            session_factory: Factory producing async sessions
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and turn driver failures into ``StoreUnavailableError``."""
        try:
            async with self.session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("catalog_store_error", operation=operation, error=str(e), exc_info=True)
            raise StoreUnavailableError(operation, original_error=e) from e

    async def scan(
        self,
        catalog_filter: Optional[CatalogFilter] = None,
        *,
        sort: Optional[MemeSort] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[MemeRecord]:
        query = apply_filter(select(MemeDB), catalog_filter)
        if sort is not None:
            query = query.order_by(*_ORDERINGS[sort])
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        async with self._session("scan") as session:
            rows = (await session.execute(query)).scalars().all()
            return [to_record(row) for row in rows]

    async def count(self, catalog_filter: Optional[CatalogFilter] = None) -> int:
        query = apply_filter(select(func.count()).select_from(MemeDB), catalog_filter)
        async with self._session("count") as session:
            return int((await session.execute(query)).scalar_one())

    async def get(self, meme_id: str) -> MemeRecord:
        async with self._session("get") as session:
            row = await session.get(MemeDB, meme_id)
            if row is None:
                raise MemeNotFoundError(meme_id)
            return to_record(row)

    async def add(self, record: MemeRecord) -> MemeRecord:
        row = MemeDB(
            id=record.id,
            image_url=record.image_url,
            storage_id=record.storage_id,
            description=record.description,
            upvotes=record.upvotes,
            downloads=record.downloads,
            created_at=record.created_at,
            image_metadata=(
                record.image_metadata.model_dump(exclude_none=True)
                if record.image_metadata
                else None
            ),
            tags=[MemeTagDB(position=i, tag=tag) for i, tag in enumerate(record.tags)],
        )
        async with self._session("add") as session:
            session.add(row)
            await session.commit()
        logger.info("meme_stored", meme_id=record.id, tags=len(record.tags))
        return record

    async def _increment(self, meme_id: str, column: Any, operation: str) -> int:
        statement = (
            update(MemeDB)
            .where(MemeDB.id == meme_id)
            .values({column: column + 1})
            .returning(column)
            .execution_options(synchronize_session=False)
        )
        async with self._session(operation) as session:
            new_value = (await session.execute(statement)).scalar_one_or_none()
            if new_value is None:
                await session.rollback()
                raise MemeNotFoundError(meme_id)
            await session.commit()
            return int(new_value)

    async def increment_upvotes(self, meme_id: str) -> int:
        return await self._increment(meme_id, MemeDB.upvotes, "increment_upvotes")

    async def increment_downloads(self, meme_id: str) -> int:
        return await self._increment(meme_id, MemeDB.downloads, "increment_downloads")

    async def ping(self) -> bool:
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))
        return True
