"""Time-decayed trending ranking and the top tag of the week."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from ..models.meme import MemeRecord
from ..repositories.catalog import CatalogFilter, CatalogStore
from ..utils.clock import days_between, ensure_utc, utc_now
from ..utils.logging import get_logger
from ..utils.pagination import PageParams, paginate

logger = get_logger(__name__)

TRENDING_WINDOW_DAYS = 30
TOP_TAG_WINDOW_DAYS = 7
ALGORITHM_DESCRIPTION = "Score = (upvotes * 2 + downloads) / (days_since_creation + 1)"


def days_since_creation(record: MemeRecord, now: datetime) -> float:
    """Fractional days since creation; a timestamp ahead of ``now`` counts as zero."""
    return max(0.0, days_between(record.created_at, now))


def trend_score(upvotes: int, downloads: int, days: float) -> float:
    """
    Weighted engagement decayed by age.

    The +1 keeps the denominator positive for memes created just now.
    """
    return (upvotes * 2 + downloads) / (days + 1)


@dataclass(frozen=True)
class TrendingMeme:
    """A record with its trend score as of query time."""

    record: MemeRecord
    score: float
    days_since_creation: float


@dataclass(frozen=True)
class TrendingResult:
    """One page of trending memes with the auxiliary top tag."""

    items: List[TrendingMeme]
    total: int
    top_tag: Optional[str]
    page: PageParams
    window_days: int
    algorithm: str = ALGORITHM_DESCRIPTION

    @property
    def calculation_period(self) -> str:
        return f"Last {self.window_days} days"


def rank_trending(
    records: Sequence[MemeRecord],
    now: datetime,
    window_days: int = TRENDING_WINDOW_DAYS,
) -> List[TrendingMeme]:
    """
    Score records inside the window and order them.

    Order: score desc, upvotes desc, newest first, then id.
    """
    ranked: List[TrendingMeme] = []
    for record in records:
        days = days_since_creation(record, now)
        if days > window_days:
            continue
        ranked.append(
            TrendingMeme(
                record=record,
                score=trend_score(record.upvotes, record.downloads, days),
                days_since_creation=days,
            )
        )

    ranked.sort(
        key=lambda item: (
            -item.score,
            -item.record.upvotes,
            -item.record.created_at.timestamp(),
            item.record.id,
        )
    )
    return ranked


def top_tag(
    records: Sequence[MemeRecord],
    now: datetime,
    window_days: int = TOP_TAG_WINDOW_DAYS,
) -> Optional[str]:
    """
    Tag with the highest average weighted engagement among recent records.

    Ties go to the tag with more records, then to the alphabetically first tag.
    Returns None when no record falls inside the window.
    """
    engagement: Dict[str, List[int]] = defaultdict(list)
    for record in records:
        if days_between(record.created_at, now) > window_days:
            continue
        for tag in dict.fromkeys(record.tags):
            engagement[tag].append(record.engagement)

    if not engagement:
        return None

    def rank(tag: str) -> tuple:
        values = engagement[tag]
        return (-sum(values) / len(values), -len(values), tag)

    return min(engagement, key=rank)


class TrendScorer:
    """Ranks recent memes by decayed engagement."""

    def __init__(
        self,
        store: CatalogStore,
        window_days: int = TRENDING_WINDOW_DAYS,
        top_tag_window_days: int = TOP_TAG_WINDOW_DAYS,
    ) -> None:
        self.store = store
        self.window_days = window_days
        self.top_tag_window_days = top_tag_window_days

    async def trending(self, page: PageParams, now: Optional[datetime] = None) -> TrendingResult:
        now = ensure_utc(now) if now is not None else utc_now()
        since = now - timedelta(days=max(self.window_days, self.top_tag_window_days))
        records = await self.store.scan(CatalogFilter(created_since=since))

        ranked = rank_trending(records, now, self.window_days)
        tag = top_tag(records, now, self.top_tag_window_days)

        logger.info(
            "trending_ranked",
            scanned=len(records),
            eligible=len(ranked),
            top_tag=tag,
            page=page.page,
            limit=page.limit,
        )
        return TrendingResult(
            items=paginate(ranked, page),
            total=len(ranked),
            top_tag=tag,
            page=page,
            window_days=self.window_days,
        )
