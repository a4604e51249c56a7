"""Pydantic schemas for meme catalog requests and responses."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..meme import ImageMetadata, MemeRecord


class APIModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationResponse(APIModel):
    """
    Schema for the pagination block.

    Attributes:
        current: Current page number
        total: Number of pages
        count: Items on this page
        total_items: Items in the whole ranked set
    """

    current: int = Field(..., ge=1, description="Current page number")
    total: int = Field(..., ge=0, description="Number of pages")
    count: int = Field(..., ge=0, description="Items on this page")
    total_items: int = Field(..., ge=0, description="Items in the whole ranked set")


class MemeResponse(APIModel):
    """Schema for a catalog record."""

    id: str = Field(..., description="Unique identifier for the meme")
    image_url: str = Field(..., description="URL of the stored image")
    storage_id: str = Field(..., description="Identifier of the image in the image store")
    tags: List[str] = Field(..., description="Lowercase tags")
    description: str = Field(..., description="Lowercase description")
    upvotes: int = Field(..., ge=0)
    downloads: int = Field(..., ge=0)
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    image_metadata: Optional[ImageMetadata] = None

    @classmethod
    def record_fields(cls, record: MemeRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "image_url": record.image_url,
            "storage_id": record.storage_id,
            "tags": list(record.tags),
            "description": record.description,
            "upvotes": record.upvotes,
            "downloads": record.downloads,
            "created_at": record.created_at,
            "image_metadata": record.image_metadata,
        }

    @classmethod
    def from_record(cls, record: MemeRecord, **extra: Any) -> "MemeResponse":
        return cls(**cls.record_fields(record), **extra)


class ScoredMemeResponse(MemeResponse):
    """A search hit."""

    relevance_score: int = Field(..., ge=0, description="2 x description hits + tag hits")


class ListedMemeResponse(MemeResponse):
    """A catalog listing entry."""

    popularity_score: int = Field(..., ge=0, description="2 x upvotes + downloads")


class SearchResponse(APIModel):
    """Schema for ranked search results."""

    success: bool = True
    search_query: str
    search_words: List[str]
    memes: List[ScoredMemeResponse]
    pagination: PaginationResponse


class MemeListResponse(APIModel):
    """Schema for the catalog listing."""

    success: bool = True
    memes: List[ListedMemeResponse]
    pagination: PaginationResponse


class MemeDetailResponse(APIModel):
    """Schema for a single meme."""

    success: bool = True
    meme: MemeResponse


class CreateMemeRequest(APIModel):
    """
    Schema for registering an image already uploaded to the image store.

    Attributes:
        image_url: Public URL returned by the image store
        storage_id: Identifier returned by the image store
        description: Optional description; generated when empty
        tags: Optional tags; generated when absent
        image_metadata: Optional technical details from the image store
    """

    image_url: str = Field(..., min_length=1, description="Public URL of the stored image")
    storage_id: str = Field(..., min_length=1, description="Image store identifier")
    description: Optional[str] = Field(None, max_length=2000, description="Optional description")
    tags: Optional[List[str]] = Field(None, max_length=50, description="Optional tags")
    image_metadata: Optional[ImageMetadata] = None


class CreationMetadata(APIModel):
    """Which fields were produced by the tagging model."""

    description_generated: bool
    tags_generated: bool


class CreateMemeResponse(APIModel):
    """Schema for a newly created meme."""

    success: bool = True
    message: str = "Meme uploaded successfully"
    meme: MemeResponse
    metadata: CreationMetadata


class UpvoteResponse(APIModel):
    """Schema for an upvote."""

    success: bool = True
    message: str = "Meme upvoted successfully"
    meme_id: str
    upvotes: int = Field(..., ge=0)


class DownloadResponse(APIModel):
    """Schema for a tracked download."""

    success: bool = True
    meme_id: str
    downloads: int = Field(..., ge=0)


class ErrorResponse(APIModel):
    """Schema for error responses."""

    success: bool = False
    message: str
    error: Dict[str, Any] = Field(default_factory=dict)
