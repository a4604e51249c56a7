"""Pydantic schemas for trending and tag statistics views."""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from .memes import APIModel, MemeResponse, PaginationResponse


class TrendingMemeResponse(MemeResponse):
    """A trending entry with its decayed score."""

    trending_score: float = Field(..., ge=0.0, description="Rounded to 2 decimals")
    days_since_creation: float = Field(..., ge=0.0, description="Rounded to 1 decimal")


class TrendingMetadata(APIModel):
    """Describes how the trending view was computed."""

    calculation_period: str = Field(..., description="Eligibility window")
    algorithm: str = Field(..., description="Scoring formula")


class TrendingResponse(APIModel):
    """Schema for trending memes."""

    success: bool = True
    trending_memes: List[TrendingMemeResponse]
    most_trending_tag: Optional[str] = None
    pagination: PaginationResponse
    metadata: TrendingMetadata

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "trendingMemes": [
                    {
                        "id": "5f1c7c1e-0b7d-4b53-9f57-58c0f0a4d4c1",
                        "imageUrl": "https://images.example.com/memes/drake.jpg",
                        "storageId": "memes/drake",
                        "tags": ["drake", "reaction"],
                        "description": "pointing at choices",
                        "upvotes": 10,
                        "downloads": 5,
                        "createdAt": "2026-10-16T12:00:00Z",
                        "trendingScore": 8.33,
                        "daysSinceCreation": 2.0,
                    }
                ],
                "mostTrendingTag": "drake",
                "pagination": {"current": 1, "total": 1, "count": 1, "totalItems": 1},
                "metadata": {
                    "calculationPeriod": "Last 30 days",
                    "algorithm": "Score = (upvotes * 2 + downloads) / (days_since_creation + 1)",
                },
            }
        }
    )


class TagStatsResponse(APIModel):
    """Aggregate statistics for one tag."""

    tag: str
    count: int = Field(..., ge=1, description="Records carrying the tag")
    total_upvotes: int = Field(..., ge=0)
    total_downloads: int = Field(..., ge=0)
    avg_upvotes: float = Field(..., ge=0.0, description="Rounded to 2 decimals")
    last_used: datetime = Field(..., description="Creation time of the newest record with the tag")


class PopularTagsResponse(APIModel):
    """Schema for popular tags."""

    success: bool = True
    popular_tags: List[TagStatsResponse]


class TagSuggestionsResponse(APIModel):
    """Schema for tag suggestions."""

    success: bool = True
    query: str
    suggestions: List[TagStatsResponse]
