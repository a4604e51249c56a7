"""Router for meme catalog endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...models.schemas.memes import (
    CreateMemeRequest,
    CreateMemeResponse,
    CreationMetadata,
    DownloadResponse,
    ListedMemeResponse,
    MemeDetailResponse,
    MemeListResponse,
    MemeResponse,
    PaginationResponse,
    ScoredMemeResponse,
    SearchResponse,
    UpvoteResponse,
)
from ...models.schemas.trends import (
    PopularTagsResponse,
    TagStatsResponse,
    TagSuggestionsResponse,
    TrendingMemeResponse,
    TrendingMetadata,
    TrendingResponse,
)
from ...services.meme_service import MemeService
from ...services.tag_aggregator import TagStats
from ...utils.pagination import build_pagination
from ...utils.rounding import round_half_away_from_zero
from ..dependencies import get_meme_service

router = APIRouter()

# page and limit are read as strings so non-numeric values fall back to defaults
PageQuery = Query(None, description="1-based page number")
LimitQuery = Query(None, description="Page size")


def _tag_stats(stats: List[TagStats]) -> List[TagStatsResponse]:
    return [
        TagStatsResponse(
            tag=s.tag,
            count=s.count,
            total_upvotes=s.total_upvotes,
            total_downloads=s.total_downloads,
            avg_upvotes=s.avg_upvotes,
            last_used=s.last_used,
        )
        for s in stats
    ]


@router.get("/search", response_model=SearchResponse)
async def search_memes(
    q: Optional[str] = Query(None, description="Search terms"),
    page: Optional[str] = PageQuery,
    limit: Optional[str] = LimitQuery,
    service: MemeService = Depends(get_meme_service),
) -> SearchResponse:
    """
    Search memes by tags and description.

    Args:
        q: Raw query text
        page: Page number
        limit: Page size
        service: Meme service

    Returns:
        Ranked search hits for the requested page

    Raises:
        InvalidQueryError: If the query has no usable terms
    """
    result = await service.search(q, page, limit)
    return SearchResponse(
        search_query=result.query,
        search_words=result.tokens,
        memes=[
            ScoredMemeResponse.from_record(hit.record, relevance_score=hit.score)
            for hit in result.items
        ],
        pagination=PaginationResponse(
            **build_pagination(result.page, result.total, len(result.items))
        ),
    )


@router.get("/trending", response_model=TrendingResponse)
async def trending_memes(
    page: Optional[str] = PageQuery,
    limit: Optional[str] = LimitQuery,
    service: MemeService = Depends(get_meme_service),
) -> TrendingResponse:
    """
    Get trending memes of the last 30 days.

    Returns:
        Trending memes with the most trending tag of the last week
    """
    result = await service.trending(page, limit)
    return TrendingResponse(
        trending_memes=[
            TrendingMemeResponse.from_record(
                item.record,
                trending_score=round_half_away_from_zero(item.score, 2),
                days_since_creation=round_half_away_from_zero(item.days_since_creation, 1),
            )
            for item in result.items
        ],
        most_trending_tag=result.top_tag,
        pagination=PaginationResponse(
            **build_pagination(result.page, result.total, len(result.items))
        ),
        metadata=TrendingMetadata(
            calculation_period=result.calculation_period,
            algorithm=result.algorithm,
        ),
    )


@router.get("/popular", response_model=PopularTagsResponse)
async def popular_tags(
    limit: Optional[str] = LimitQuery,
    service: MemeService = Depends(get_meme_service),
) -> PopularTagsResponse:
    """Get the most used tags."""
    stats = await service.popular_tags(limit)
    return PopularTagsResponse(popular_tags=_tag_stats(stats))


@router.get("/tags/suggest", response_model=TagSuggestionsResponse)
async def suggest_tags(
    q: Optional[str] = Query(None, description="Tag fragment"),
    limit: Optional[str] = LimitQuery,
    service: MemeService = Depends(get_meme_service),
) -> TagSuggestionsResponse:
    """Suggest existing tags containing a fragment."""
    stats = await service.suggest_tags(q, limit)
    return TagSuggestionsResponse(query=q or "", suggestions=_tag_stats(stats))


@router.get("/", response_model=MemeListResponse)
async def list_memes(
    page: Optional[str] = PageQuery,
    limit: Optional[str] = LimitQuery,
    sort: Optional[str] = Query(None, description="recent, popular or trending"),
    tags: Optional[str] = Query(None, description="Comma-separated tags, any of"),
    service: MemeService = Depends(get_meme_service),
) -> MemeListResponse:
    """
    List memes with pagination and an optional tag filter.

    Args:
        page: Page number
        limit: Page size
        sort: Listing order
        tags: Comma-separated tag filter
        service: Meme service

    Returns:
        One page of the catalog
    """
    result = await service.list_memes(page, limit, sort=sort, tags=tags)
    return MemeListResponse(
        memes=[
            ListedMemeResponse.from_record(record, popularity_score=record.engagement)
            for record in result.items
        ],
        pagination=PaginationResponse(
            **build_pagination(result.page, result.total, len(result.items))
        ),
    )


@router.post("/", response_model=CreateMemeResponse, status_code=status.HTTP_201_CREATED)
async def create_meme(
    request: CreateMemeRequest,
    service: MemeService = Depends(get_meme_service),
) -> CreateMemeResponse:
    """
    Register an uploaded meme image.

    Missing tags and description are generated from the image.

    Raises:
        InvalidMemeDataError: If the supplied tags are invalid
    """
    created = await service.create_meme(request)
    return CreateMemeResponse(
        meme=MemeResponse.from_record(created.record),
        metadata=CreationMetadata(
            description_generated=created.description_generated,
            tags_generated=created.tags_generated,
        ),
    )


@router.get("/{meme_id}", response_model=MemeDetailResponse)
async def get_meme(
    meme_id: str,
    service: MemeService = Depends(get_meme_service),
) -> MemeDetailResponse:
    """
    Get a specific meme by ID.

    Raises:
        MemeNotFoundError: If the meme doesn't exist
    """
    record = await service.get_meme(meme_id)
    return MemeDetailResponse(meme=MemeResponse.from_record(record))


@router.post("/{meme_id}/upvote", response_model=UpvoteResponse)
async def upvote_meme(
    meme_id: str,
    service: MemeService = Depends(get_meme_service),
) -> UpvoteResponse:
    upvotes = await service.upvote(meme_id)
    return UpvoteResponse(meme_id=meme_id, upvotes=upvotes)


@router.post("/{meme_id}/download", response_model=DownloadResponse)
async def track_download(
    meme_id: str,
    service: MemeService = Depends(get_meme_service),
) -> DownloadResponse:
    downloads = await service.track_download(meme_id)
    return DownloadResponse(meme_id=meme_id, downloads=downloads)
