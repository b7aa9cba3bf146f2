"""Pydantic schemas for the social media admin API.

Covers social sources, scraped posts and scheduler control.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spaceplus.db.models import SocialPlatform

# -----------------------------------------------------------------------------
# Sources
# -----------------------------------------------------------------------------


class SocialSourceCreate(BaseModel):
    """Request body for creating a social source."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    platform: SocialPlatform = Field(..., description="instagram, wechat, weibo or twitter")
    username: str | None = Field(None, max_length=255, description="Account handle")
    access_token: str | None = Field(None, description="Platform API access token")
    webhook_url: str | None = Field(None, max_length=1000)
    is_active: bool = Field(True, description="Whether the scheduler polls this source")
    sync_interval: int = Field(3600, ge=1, description="Seconds between scrapes")
    config: dict[str, Any] = Field(default_factory=dict, description="Platform options")

    model_config = ConfigDict(extra="forbid")

    @field_validator("platform", mode="before")
    @classmethod
    def normalize_platform(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class SocialSourceUpdate(BaseModel):
    """Partial update of a social source; omitted fields are unchanged."""

    name: str | None = Field(None, min_length=1, max_length=255)
    username: str | None = Field(None, max_length=255)
    access_token: str | None = None
    webhook_url: str | None = Field(None, max_length=1000)
    is_active: bool | None = None
    sync_interval: int | None = Field(None, ge=1)
    config: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")


class SocialSourceResponse(BaseModel):
    """A social source. The access token itself is never returned."""

    model_config = ConfigDict(from_attributes=True)

    source_id: UUID
    name: str
    platform: SocialPlatform
    username: str | None = None
    has_access_token: bool = False
    webhook_url: str | None = None
    is_active: bool
    sync_interval: int
    config: dict[str, Any] | None = None
    last_sync: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    post_count: int = 0

    @classmethod
    def from_source(cls, source: Any, post_count: int = 0) -> SocialSourceResponse:
        return cls(
            source_id=source.source_id,
            name=source.name,
            platform=source.platform,
            username=source.username,
            has_access_token=bool(source.access_token),
            webhook_url=source.webhook_url,
            is_active=source.is_active,
            sync_interval=source.sync_interval,
            config=source.config,
            last_sync=source.last_sync,
            created_at=source.created_at,
            updated_at=source.updated_at,
            post_count=post_count,
        )


class SocialPostResponse(BaseModel):
    """A scraped post."""

    model_config = ConfigDict(from_attributes=True)

    post_id: UUID
    source_id: UUID
    platform: SocialPlatform
    platform_id: str
    title: str | None = None
    content: str
    media_urls: list[str] = Field(default_factory=list)
    author_name: str | None = None
    author_avatar: str | None = None
    published_at: datetime
    likes: int = 0
    comments: int = 0
    shares: int = 0
    hashtags: list[str] = Field(default_factory=list)
    location: str | None = None
    is_processed: bool = False
    news_id: UUID | None = None
    source_name: str | None = None


class SocialSourceDetail(SocialSourceResponse):
    recent_posts: list[SocialPostResponse] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Source actions
# -----------------------------------------------------------------------------


class ScrapeOutcomeResponse(BaseModel):
    """Result of scraping one source."""

    model_config = ConfigDict(from_attributes=True)

    source_id: UUID
    success: bool
    message: str
    posts_found: int = 0
    posts_saved: int = 0
    news_created: int = 0


class SamplePost(BaseModel):
    """Preview of a post fetched during a connection test."""

    model_config = ConfigDict(from_attributes=True)

    platform_id: str
    title: str | None = None
    content: str
    media_urls: list[str] = Field(default_factory=list)
    published_at: datetime


class ConnectionTestResult(BaseModel):
    posts_count: int = Field(..., description="Posts the platform returned")
    sample_posts: list[SamplePost] = Field(default_factory=list, description="First three posts")


class ConvertResult(BaseModel):
    converted_count: int


# -----------------------------------------------------------------------------
# Posts batch actions
# -----------------------------------------------------------------------------


class PostBatchAction(str, Enum):
    CONVERT_TO_NEWS = "convert_to_news"
    MARK_PROCESSED = "mark_processed"
    MARK_UNPROCESSED = "mark_unprocessed"
    DELETE = "delete"


class PostBatchRequest(BaseModel):
    """Apply one action to several posts."""

    action: PostBatchAction
    post_ids: list[UUID] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class PostConversionResult(BaseModel):
    post_id: UUID
    success: bool
    news_id: UUID | None = None
    error: str | None = None


class PostBatchResult(BaseModel):
    action: PostBatchAction
    total_count: int
    affected_count: int
    results: list[PostConversionResult] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Scheduler
# -----------------------------------------------------------------------------


class SchedulerAction(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    SYNC_ALL = "sync_all"


class SchedulerActionRequest(BaseModel):
    action: SchedulerAction

    model_config = ConfigDict(extra="forbid")


class SchedulerStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_running: bool
    active_tasks: int
    task_list: list[str]
    intervals: dict[str, int] = Field(default_factory=dict)


class SchedulerStatistics(BaseModel):
    total_sources: int
    active_sources: int
    total_posts: int
    unprocessed_posts: int


class RecentSync(BaseModel):
    source_id: UUID
    name: str
    platform: SocialPlatform
    last_sync: datetime
    is_active: bool


class SchedulerOverview(BaseModel):
    scheduler: SchedulerStatusResponse
    statistics: SchedulerStatistics
    recent_syncs: list[RecentSync] = Field(default_factory=list)


class SyncAllResult(BaseModel):
    total_sources: int
    success_count: int
    results: list[ScrapeOutcomeResponse] = Field(default_factory=list)
