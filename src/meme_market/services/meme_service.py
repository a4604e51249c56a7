"""Service layer composing the catalog store, the ranking core and the tagger."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from ..config.config import Settings, settings as default_settings
from ..dspy_modules.meme_tagger import MemeTagger
from ..exceptions import InvalidMemeDataError, InvalidParameterError, UpstreamGenerationError
from ..models.meme import MAX_DESCRIPTION_LENGTH, MemeRecord, MemeSort, tag_error
from ..models.schemas.memes import CreateMemeRequest
from ..monitoring.decorators import track_ranking_query
from ..monitoring.metrics import ENGAGEMENT_EVENTS, MEMES_CREATED, RESULT_SIZE
from ..repositories.catalog import CatalogFilter, CatalogStore
from ..utils.clock import utc_now
from ..utils.logging import get_logger
from ..utils.pagination import PageParams, clamp_limit, normalize_pagination
from .relevance_search import RelevanceSearch, SearchResult
from .tag_aggregator import TagAggregator, TagStats
from .trend_scorer import TrendingResult, TrendScorer

logger = get_logger(__name__)


@dataclass(frozen=True)
class MemePage:
    """One page of the catalog listing."""

    items: List[MemeRecord]
    total: int
    page: PageParams


@dataclass(frozen=True)
class CreatedMeme:
    """A newly stored meme and which fields the tagging model produced."""

    record: MemeRecord
    tags_generated: bool
    description_generated: bool


def parse_tag_filter(tags: Optional[str]) -> Optional[Tuple[str, ...]]:
    """Split a comma-separated tag filter into lowercase tags; None when empty."""
    if not tags:
        return None
    parsed = tuple(dict.fromkeys(t.strip().lower() for t in tags.split(",") if t.strip()))
    return parsed or None


def parse_sort(sort: Optional[str]) -> MemeSort:
    """
    Resolve a listing order name.

    Raises:
        InvalidParameterError: If the name is not a known order
    """
    if not sort:
        return MemeSort.RECENT
    try:
        return MemeSort(sort.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in MemeSort)
        raise InvalidParameterError("sort", sort, f"must be one of: {allowed}")


def clean_tags(tags: Sequence[Any]) -> Tuple[List[str], List[str]]:
    """
    Normalize tags: lowercase, trim, drop duplicates.

    Returns:
        Tuple of (valid tags in order, rejection reasons)
    """
    valid: List[str] = []
    rejected: List[str] = []
    for raw in tags:
        tag = str(raw).strip().lower()
        reason = tag_error(tag)
        if reason:
            rejected.append(f"{raw!r}: {reason}")
        elif tag not in valid:
            valid.append(tag)
    return valid, rejected


class MemeService:
    """Entry point for every catalog operation exposed by the API and CLI."""

    def __init__(
        self,
        store: CatalogStore,
        tagger: MemeTagger,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Catalog store
            tagger: Tag/description generator for new memes
            settings: Application settings, the module defaults when None
        """
        self.store = store
        self.tagger = tagger
        self.settings = settings or default_settings
        self.relevance_search = RelevanceSearch(store)
        self.trend_scorer = TrendScorer(
            store,
            window_days=self.settings.trending_window_days,
            top_tag_window_days=self.settings.top_tag_window_days,
        )
        self.tag_aggregator = TagAggregator(store)

    def page_params(self, page: Any = None, limit: Any = None) -> PageParams:
        return normalize_pagination(
            page,
            limit,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )

    # Ranked views

    @track_ranking_query("search")
    async def search(self, query: str, page: Any = None, limit: Any = None) -> SearchResult:
        """
        Ranked search over tags and descriptions.

        Raises:
            InvalidQueryError: If the query has no usable terms
            InvalidParameterError: If page or limit is not positive
            StoreUnavailableError: If the catalog cannot be read
        """
        result = await self.relevance_search.search(query, self.page_params(page, limit))
        RESULT_SIZE.labels(operation="search").observe(result.total)
        return result

    @track_ranking_query("trending")
    async def trending(
        self,
        page: Any = None,
        limit: Any = None,
        now: Optional[datetime] = None,
    ) -> TrendingResult:
        result = await self.trend_scorer.trending(self.page_params(page, limit), now=now)
        RESULT_SIZE.labels(operation="trending").observe(result.total)
        return result

    @track_ranking_query("popular_tags")
    async def popular_tags(self, limit: Any = None) -> List[TagStats]:
        limit = clamp_limit(
            limit,
            default=self.settings.popular_tags_limit,
            max_limit=self.settings.max_page_size,
        )
        return await self.tag_aggregator.popular_tags(limit)

    @track_ranking_query("tag_suggestions")
    async def suggest_tags(self, fragment: str, limit: Any = None) -> List[TagStats]:
        limit = clamp_limit(
            limit,
            default=self.settings.tag_suggestion_limit,
            max_limit=self.settings.max_page_size,
        )
        return await self.tag_aggregator.suggest_tags(fragment, limit)

    @track_ranking_query("list")
    async def list_memes(
        self,
        page: Any = None,
        limit: Any = None,
        sort: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> MemePage:
        """
        Catalog listing with an optional any-of tag filter.

        Raises:
            InvalidParameterError: On an unknown sort, a non-positive page/limit
                or a page past the largest offset
        """
        params = self.page_params(page, limit)
        order = parse_sort(sort)
        catalog_filter = CatalogFilter(tags=parse_tag_filter(tags))

        items = await self.store.scan(
            catalog_filter, sort=order, offset=params.skip, limit=params.limit
        )
        total = await self.store.count(catalog_filter)
        return MemePage(items=items, total=total, page=params)

    async def get_meme(self, meme_id: str) -> MemeRecord:
        return await self.store.get(meme_id)

    # Engagement counters

    async def upvote(self, meme_id: str) -> int:
        upvotes = await self.store.increment_upvotes(meme_id)
        ENGAGEMENT_EVENTS.labels(kind="upvote").inc()
        logger.info("meme_upvoted", meme_id=meme_id, upvotes=upvotes)
        return upvotes

    async def track_download(self, meme_id: str) -> int:
        downloads = await self.store.increment_downloads(meme_id)
        ENGAGEMENT_EVENTS.labels(kind="download").inc()
        logger.info("meme_downloaded", meme_id=meme_id, downloads=downloads)
        return downloads

    # Creation

    async def _generated_tags(self, image_url: str) -> List[str]:
        try:
            raw = await self.tagger.generate_tags(image_url)
        except UpstreamGenerationError as e:
            logger.warning("tag_generation_fallback", image_url=image_url, error=e.message)
            return list(self.settings.fallback_tags)

        tags, rejected = clean_tags(raw)
        if rejected:
            logger.info("generated_tags_dropped", rejected=rejected)
        tags = tags[:self.settings.max_generated_tags]
        if not tags:
            logger.warning("tag_generation_fallback", image_url=image_url, error="no usable tags")
            return list(self.settings.fallback_tags)
        return tags

    async def _generated_description(self, image_url: str) -> str:
        try:
            return await self.tagger.generate_description(image_url)
        except UpstreamGenerationError as e:
            logger.warning("description_generation_fallback", image_url=image_url, error=e.message)
            return self.settings.fallback_description

    async def create_meme(self, request: CreateMemeRequest) -> CreatedMeme:
        """
        Register an uploaded image in the catalog.

        Missing tags and an empty description are filled in by the tagger;
        tagger failures fall back to configured defaults instead of failing
        the upload.

        Raises:
            InvalidMemeDataError: If client-supplied tags are invalid
            StoreUnavailableError: If the record cannot be stored
        """
        tags: List[str] = []
        if request.tags is not None:
            tags, rejected = clean_tags(request.tags)
            if rejected or not tags:
                raise InvalidMemeDataError(
                    "Invalid tags",
                    {"tags": rejected or ["at least one tag is required"]},
                )

        tags_generated = request.tags is None
        if tags_generated:
            tags = await self._generated_tags(request.image_url)

        description = (request.description or "").strip()
        description_generated = not description
        if description_generated:
            description = await self._generated_description(request.image_url)
        description = description.strip().lower()[:MAX_DESCRIPTION_LENGTH]

        record = MemeRecord(
            id=str(uuid.uuid4()),
            image_url=request.image_url,
            storage_id=request.storage_id,
            tags=tags,
            description=description,
            created_at=utc_now(),
            image_metadata=request.image_metadata,
        )
        await self.store.add(record)

        MEMES_CREATED.labels(
            metadata_source="model" if tags_generated or description_generated else "client"
        ).inc()
        logger.info(
            "meme_created",
            meme_id=record.id,
            tags=tags,
            tags_generated=tags_generated,
            description_generated=description_generated,
        )
        return CreatedMeme(
            record=record,
            tags_generated=tags_generated,
            description_generated=description_generated,
        )
