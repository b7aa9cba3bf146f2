"""Social media ingestion models.

A SocialSource is an account on a social platform that the scheduler polls.
Each scraped item becomes a SocialPost, unique per (platform, platform_id).
A post can be promoted into a News article once, after which it is marked
processed and linked to the article.
"""

from __future__ import annotations

import uuid  # noqa: TC003 - required at runtime for SQLAlchemy type resolution
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spaceplus.db.models.base import (
    Base,
    OptionalTimestampTZ,
    SocialPlatform,
    TimestampTZ,
    UUIDPrimaryKey,
    pg_enum,
)

DEFAULT_SYNC_INTERVAL_SECONDS = 3600

# Shared by both tables so the PostgreSQL type is declared once
social_platform_type = pg_enum(SocialPlatform, "social_platform")


class SocialSource(Base):
    """Configured social media account.

    ``config`` holds platform specific options, e.g. ``rss_url`` / ``api_url``
    for WeChat and ``autoConvertToNews`` to promote new posts automatically.
    """

    __tablename__ = "social_sources"

    source_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    platform: Mapped[SocialPlatform] = mapped_column(
        social_platform_type,
        nullable=False,
    )
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    webhook_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Seconds between scheduled scrapes
    sync_interval: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_SYNC_INTERVAL_SECONDS, nullable=False
    )
    config: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    last_sync: Mapped[OptionalTimestampTZ]

    posts: Mapped[list[SocialPost]] = relationship(
        "SocialPost",
        back_populates="source",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_social_sources_is_active", "is_active"),)

    @property
    def auto_convert_to_news(self) -> bool:
        """Whether new posts from this source are promoted to news."""
        config = self.config or {}
        return bool(config.get("autoConvertToNews") or config.get("auto_convert_to_news"))


class SocialPost(Base):
    """Post scraped from a social source."""

    __tablename__ = "social_posts"

    post_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    source_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("social_sources.source_id", ondelete="CASCADE"),
        nullable=False,
    )
    platform: Mapped[SocialPlatform] = mapped_column(
        social_platform_type,
        nullable=False,
    )
    platform_id: Mapped[str] = mapped_column(String(500), nullable=False)

    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    media_urls: Mapped[list[str]] = mapped_column(ARRAY(Text), default=list, nullable=False)
    author_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    author_avatar: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    published_at: Mapped[TimestampTZ]

    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comments: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    shares: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hashtags: Mapped[list[str]] = mapped_column(ARRAY(String(255)), default=list, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_processed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    news_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("news.news_id", ondelete="SET NULL"),
        nullable=True,
    )

    source: Mapped[SocialSource] = relationship("SocialSource", back_populates="posts")
    news: Mapped[News | None] = relationship("News", lazy="select")  # noqa: F821

    __table_args__ = (
        UniqueConstraint("platform", "platform_id"),
        Index("ix_social_posts_source_id", "source_id"),
        Index("ix_social_posts_is_processed", "is_processed"),
        Index("ix_social_posts_published_at", "published_at"),
    )
