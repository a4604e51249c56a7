"""Domain models for catalog records."""

import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.clock import ensure_utc

TAG_PATTERN = re.compile(r"^[a-z0-9\s\-_]+$")
MAX_TAG_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 500


def tag_error(tag: str) -> Optional[str]:
    """Return why ``tag`` is not a valid stored tag, or None if it is."""
    if not tag:
        return "tag is empty"
    if len(tag) > MAX_TAG_LENGTH:
        return f"tag longer than {MAX_TAG_LENGTH} characters"
    if not TAG_PATTERN.match(tag):
        return "tag may only contain a-z, 0-9, whitespace, '-' and '_'"
    return None


class MemeSort(str, Enum):
    """Orderings supported by the catalog listing."""

    RECENT = "recent"
    POPULAR = "popular"
    TRENDING = "trending"


class ImageMetadata(BaseModel):
    """Technical details reported by the image store at upload time."""

    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)
    format: Optional[str] = None
    size: Optional[int] = Field(None, ge=0, description="Size in bytes")


class MemeRecord(BaseModel):
    """
    One catalog entry: an uploaded meme and its engagement counters.

    Attributes:
        id: Opaque unique identifier
        image_url: Public URL of the stored image
        storage_id: Identifier of the image in the external store
        tags: Lowercase tags in generation order
        description: Lowercase description
        upvotes: Upvote counter
        downloads: Download counter
        created_at: Creation time (UTC), the anchor for decay and recency
        image_metadata: Optional technical image details
    """

    model_config = ConfigDict(frozen=True)

    id: str
    image_url: str
    storage_id: str
    tags: List[str] = Field(..., min_length=1)
    description: str = Field("", max_length=MAX_DESCRIPTION_LENGTH)
    upvotes: int = Field(0, ge=0)
    downloads: int = Field(0, ge=0)
    created_at: datetime
    image_metadata: Optional[ImageMetadata] = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: List[str]) -> List[str]:
        for tag in value:
            error = tag_error(tag)
            if error:
                raise ValueError(f"{tag!r}: {error}")
        return value

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        """Store every timestamp as aware UTC."""
        return ensure_utc(value)

    @property
    def engagement(self) -> int:
        """Weighted engagement: upvotes count double."""
        return self.upvotes * 2 + self.downloads
