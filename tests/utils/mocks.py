"""In-memory stand-ins for the catalog store and the tagging model."""

import itertools
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from meme_market.dspy_modules.meme_tagger import MemeTagger
from meme_market.exceptions import MemeNotFoundError, StoreUnavailableError, UpstreamGenerationError
from meme_market.models.meme import MemeRecord, MemeSort
from meme_market.repositories.catalog import CatalogFilter, CatalogStore

_ids = itertools.count(1)


def sort_key(sort: MemeSort) -> Callable[[MemeRecord], Any]:
    """Ascending key reproducing the SQL listing orders, id last."""
    if sort is MemeSort.POPULAR:
        return lambda r: (-r.upvotes, -r.downloads, r.id)
    if sort is MemeSort.TRENDING:
        return lambda r: (-r.upvotes, -r.created_at.timestamp(), r.id)
    return lambda r: (-r.created_at.timestamp(), r.id)


def make_record(
    id: Optional[str] = None,
    tags: Optional[List[str]] = None,
    description: str = "",
    upvotes: int = 0,
    downloads: int = 0,
    created_at: Optional[datetime] = None,
) -> MemeRecord:
    """Build a catalog record with sensible defaults.

    Args:
        id: Record id, generated when None
        tags: Record tags, ``["meme"]`` when None
        description: Lowercase description
        upvotes: Upvote counter
        downloads: Download counter
        created_at: Creation time, a fixed instant when None

    Returns:
        MemeRecord: The record
    """
    meme_id = id or f"meme-{next(_ids):04d}"
    return MemeRecord(
        id=meme_id,
        image_url=f"https://images.example.com/{meme_id}.jpg",
        storage_id=f"memes/{meme_id}",
        tags=tags if tags is not None else ["meme"],
        description=description,
        upvotes=upvotes,
        downloads=downloads,
        created_at=created_at or datetime(2026, 10, 1, tzinfo=timezone.utc),
    )


class FakeCatalogStore(CatalogStore):
    """Catalog store backed by a dict."""

    def __init__(self, records: Optional[List[MemeRecord]] = None) -> None:
        self.records: Dict[str, MemeRecord] = {r.id: r for r in records or []}
        self.scan_filters: List[Optional[CatalogFilter]] = []
        self.unavailable = False

    def seed(self, *records: MemeRecord) -> None:
        for record in records:
            self.records[record.id] = record

    def _check(self, operation: str) -> None:
        if self.unavailable:
            raise StoreUnavailableError(operation, ConnectionError("catalog offline"))

    async def scan(
        self,
        catalog_filter: Optional[CatalogFilter] = None,
        *,
        sort: Optional[MemeSort] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[MemeRecord]:
        self._check("scan")
        self.scan_filters.append(catalog_filter)
        found = [r for r in self.records.values() if catalog_filter is None or catalog_filter.matches(r)]
        if sort is not None:
            found.sort(key=sort_key(sort))
        found = found[offset:]
        return found if limit is None else found[:limit]

    async def count(self, catalog_filter: Optional[CatalogFilter] = None) -> int:
        self._check("count")
        return sum(1 for r in self.records.values() if catalog_filter is None or catalog_filter.matches(r))

    async def get(self, meme_id: str) -> MemeRecord:
        self._check("get")
        try:
            return self.records[meme_id]
        except KeyError:
            raise MemeNotFoundError(meme_id)

    async def add(self, record: MemeRecord) -> MemeRecord:
        self._check("add")
        self.records[record.id] = record
        return record

    async def _increment(self, meme_id: str, field: str) -> int:
        record = await self.get(meme_id)
        updated = record.model_copy(update={field: getattr(record, field) + 1})
        self.records[meme_id] = updated
        return getattr(updated, field)

    async def increment_upvotes(self, meme_id: str) -> int:
        return await self._increment(meme_id, "upvotes")

    async def increment_downloads(self, meme_id: str) -> int:
        return await self._increment(meme_id, "downloads")

    async def ping(self) -> bool:
        self._check("ping")
        return True


class StubTagger(MemeTagger):
    """Tagger with canned output; ``None`` makes the call fail like an unreachable model."""

    def __init__(self, tags: Optional[List[str]] = None, description: Optional[str] = None) -> None:
        self.tags = tags
        self.description = description
        self.calls: List[str] = []

    async def generate_tags(self, image_url: str) -> List[str]:
        self.calls.append("tags")
        if self.tags is None:
            raise UpstreamGenerationError("model offline", operation="tags")
        return list(self.tags)

    async def generate_description(self, image_url: str) -> str:
        self.calls.append("description")
        if self.description is None:
            raise UpstreamGenerationError("model offline", operation="description")
        return self.description
