"""CMS content models: job postings, news, case studies, media, homepage."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from spaceplus.db.models.base import (
    Base,
    OptionalTimestampTZ,
    TimestampTZ,
    UUIDPrimaryKey,
)


class Job(Base):
    """Job posting shown on the careers page."""

    __tablename__ = "jobs"

    job_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    employment_type: Mapped[str] = mapped_column(String(50), default="full_time", nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    requirements: Mapped[list[str]] = mapped_column(ARRAY(Text), default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    published_at: Mapped[OptionalTimestampTZ]

    __table_args__ = (Index("ix_jobs_is_active", "is_active"),)


class News(Base):
    """News article.

    Articles are written in the CMS or generated from social posts. Generated
    articles carry ``auto_generated=True`` plus the originating platform
    (``source``), the post URL and the platform's post id. An article is
    public once ``published_at`` is set and not in the future.
    """

    __tablename__ = "news"

    news_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="company", nullable=False)

    author_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    author_avatar: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    # Filled from post hashtags, so never narrower than SocialPost.hashtags
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(255)), default=list, nullable=False)

    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    read_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    published_at: Mapped[OptionalTimestampTZ]

    # Provenance of generated articles
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    source_id: Mapped[str | None] = mapped_column(String(500), nullable=True)
    auto_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_news_published_at", "published_at"),
        Index("ix_news_category", "category"),
    )


class Case(Base):
    """Client case study."""

    __tablename__ = "cases"

    case_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    client: Mapped[str | None] = mapped_column(String(255), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(100)), default=list, nullable=False)
    published_at: Mapped[OptionalTimestampTZ]


class Media(Base):
    """Uploaded media file referenced by CMS content."""

    __tablename__ = "media"

    media_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    alt: Mapped[str | None] = mapped_column(String(500), nullable=True)


class Homepage(Base):
    """Editable homepage section, one row per section key and locale."""

    __tablename__ = "homepage_sections"

    section_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    section_key: Mapped[str] = mapped_column(String(100), nullable=False)
    locale: Mapped[str] = mapped_column(String(10), default="en", nullable=False)
    content: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (UniqueConstraint("section_key", "locale"),)
