"""Catalog store interface consumed by the ranking core."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from ..models.meme import MemeRecord, MemeSort
from ..utils.clock import ensure_utc


@dataclass(frozen=True)
class CatalogFilter:
    """
    Record filter understood by every catalog store.

    All provided criteria must hold. Substring criteria are case-insensitive.

    Attributes:
        tags: Record carries at least one of these tags (exact membership)
        tag_contains: Some tag of the record contains this substring
        description_contains: The description contains this substring
        text_terms: Some term is a substring of some tag or of the description
        created_since: Record was created at or after this instant
    """

    tags: Optional[Tuple[str, ...]] = None
    tag_contains: Optional[str] = None
    description_contains: Optional[str] = None
    text_terms: Optional[Tuple[str, ...]] = None
    created_since: Optional[datetime] = None

    def matches(self, record: MemeRecord) -> bool:
        """Evaluate the filter against a single record in memory."""
        lowered_tags = [tag.lower() for tag in record.tags]
        description = record.description.lower()

        if self.tags is not None and not set(self.tags) & set(record.tags):
            return False
        if self.tag_contains is not None:
            needle = self.tag_contains.lower()
            if not any(needle in tag for tag in lowered_tags):
                return False
        if self.description_contains is not None:
            if self.description_contains.lower() not in description:
                return False
        if self.text_terms is not None:
            terms = [term.lower() for term in self.text_terms]
            if not any(
                term in description or any(term in tag for tag in lowered_tags)
                for term in terms
            ):
                return False
        if self.created_since is not None:
            if record.created_at < ensure_utc(self.created_since):
                return False
        return True


class CatalogStore(ABC):
    """Durable mapping from meme identifier to meme record."""

    @abstractmethod
    async def scan(
        self,
        catalog_filter: Optional[CatalogFilter] = None,
        *,
        sort: Optional[MemeSort] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[MemeRecord]:
        """
        Return records matching the filter.

        Args:
            catalog_filter: Filter to apply, everything when None
            sort: Optional listing order; unordered when None
            offset: Records to skip (only meaningful with ``sort``)
            limit: Maximum number of records to return

        Raises:
            StoreUnavailableError: If the store cannot be read
        """

    @abstractmethod
    async def count(self, catalog_filter: Optional[CatalogFilter] = None) -> int:
        """Count records matching the filter."""

    @abstractmethod
    async def get(self, meme_id: str) -> MemeRecord:
        """
        Fetch a single record.

        Raises:
            MemeNotFoundError: If no record has this id
        """

    @abstractmethod
    async def add(self, record: MemeRecord) -> MemeRecord:
        """Persist a new record and return it."""

    @abstractmethod
    async def increment_upvotes(self, meme_id: str) -> int:
        """
        Atomically add one upvote.

        Returns:
            int: The new upvote count

        Raises:
            MemeNotFoundError: If no record has this id
        """

    @abstractmethod
    async def increment_downloads(self, meme_id: str) -> int:
        """
        Atomically add one download.

        Returns:
            int: The new download count

        Raises:
            MemeNotFoundError: If no record has this id
        """

    async def ping(self) -> bool:
        """Check connectivity; stores without a backend are always up."""
        return True
