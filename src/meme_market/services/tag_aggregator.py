"""Per-tag statistics over the catalog."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..exceptions import InvalidQueryError
from ..models.meme import MemeRecord
from ..repositories.catalog import CatalogFilter, CatalogStore
from ..utils.logging import get_logger
from ..utils.rounding import round_half_away_from_zero

logger = get_logger(__name__)

POPULAR_TAGS_LIMIT = 30
TAG_SUGGESTION_LIMIT = 10

_DISALLOWED = re.compile(r"[^a-z0-9\s\-_]")


def sanitize_fragment(fragment: Optional[str], max_length: int = 200) -> str:
    """Lowercase, strip characters tags can never contain, trim and cap length."""
    if not fragment or not isinstance(fragment, str):
        return ""
    return _DISALLOWED.sub("", fragment.lower()).strip()[:max_length]


@dataclass(frozen=True)
class TagStats:
    """Aggregate engagement of all records carrying one tag."""

    tag: str
    count: int
    total_upvotes: int
    total_downloads: int
    last_used: datetime

    @property
    def avg_upvotes(self) -> float:
        return round_half_away_from_zero(self.total_upvotes / self.count, 2)


def aggregate_tags(
    records: Sequence[MemeRecord],
    contains: Optional[str] = None,
) -> List[TagStats]:
    """
    Group (record, tag) pairs by tag.

    A record contributes once to each distinct tag it carries. Ordered by
    count desc, total upvotes desc, then tag.

    Args:
        records: Records to aggregate
        contains: Only aggregate tags containing this lowercase substring
    """
    groups: Dict[str, Dict] = {}
    for record in records:
        for tag in dict.fromkeys(record.tags):
            if contains is not None and contains not in tag:
                continue
            group = groups.get(tag)
            if group is None:
                groups[tag] = {
                    "count": 1,
                    "upvotes": record.upvotes,
                    "downloads": record.downloads,
                    "last_used": record.created_at,
                }
                continue
            group["count"] += 1
            group["upvotes"] += record.upvotes
            group["downloads"] += record.downloads
            group["last_used"] = max(group["last_used"], record.created_at)

    stats = [
        TagStats(
            tag=tag,
            count=group["count"],
            total_upvotes=group["upvotes"],
            total_downloads=group["downloads"],
            last_used=group["last_used"],
        )
        for tag, group in groups.items()
    ]
    stats.sort(key=lambda s: (-s.count, -s.total_upvotes, s.tag))
    return stats


class TagAggregator:
    """Computes tag popularity views from a catalog scan."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    async def popular_tags(self, limit: int = POPULAR_TAGS_LIMIT) -> List[TagStats]:
        records = await self.store.scan()
        stats = aggregate_tags(records)
        logger.info("popular_tags_aggregated", records=len(records), tags=len(stats), limit=limit)
        return stats[:limit]

    async def suggest_tags(self, fragment: str, limit: int = TAG_SUGGESTION_LIMIT) -> List[TagStats]:
        """
        Most used tags containing ``fragment``.

        Raises:
            InvalidQueryError: If the fragment is empty after sanitizing
        """
        needle = sanitize_fragment(fragment)
        if not needle:
            raise InvalidQueryError("Tag fragment is required", query=fragment)

        records = await self.store.scan(CatalogFilter(tag_contains=needle))
        stats = aggregate_tags(records, contains=needle)
        logger.info("tag_suggestions_aggregated", fragment=needle, tags=len(stats), limit=limit)
        return stats[:limit]
