"""Pydantic schemas for the public news API."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NewsSummary(BaseModel):
    """News article as shown in listings and related-article blocks."""

    model_config = ConfigDict(from_attributes=True)

    news_id: UUID
    slug: str
    title: str
    excerpt: str | None = None
    image: str | None = None
    category: str
    published_at: datetime | None = None
    read_time: int | None = None


class NewsDetail(NewsSummary):
    """Full article with provenance of generated articles."""

    content: str
    author_name: str | None = None
    author_avatar: str | None = None
    tags: list[str] = Field(default_factory=list)
    views: int = 0
    source: str | None = Field(None, description="Platform a generated article came from")
    source_url: str | None = None
    auto_generated: bool = False
    related_news: list[NewsSummary] = Field(default_factory=list)
