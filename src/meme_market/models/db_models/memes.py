"""Database models for the meme catalog."""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemeDB(Base):
    """
    A stored meme.

    Tags live in ``meme_tags`` so that tag membership and tag substring
    filters stay plain SQL on every backend.
    """

    __tablename__ = "memes"
    __table_args__ = (
        CheckConstraint("upvotes >= 0", name="ck_memes_upvotes_non_negative"),
        CheckConstraint("downloads >= 0", name="ck_memes_downloads_non_negative"),
    )

    id = Column(String(36), primary_key=True, index=True)
    image_url = Column(String, nullable=False)
    storage_id = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    upvotes = Column(Integer, nullable=False, default=0, index=True)
    downloads = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False, index=True)
    image_metadata = Column(JSON, nullable=True)

    tags = relationship(
        "MemeTagDB",
        order_by="MemeTagDB.position",
        cascade="all, delete-orphan",
        lazy="selectin",
        back_populates="meme",
    )


class MemeTagDB(Base):
    """One tag of a meme, kept in generation order."""

    __tablename__ = "meme_tags"

    meme_id = Column(String(36), ForeignKey("memes.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, primary_key=True)
    tag = Column(String(50), nullable=False, index=True)

    meme = relationship("MemeDB", back_populates="tags")
