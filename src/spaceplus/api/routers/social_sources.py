"""Admin management of social sources.

Every change to a source is pushed to the scheduler through reload_source so
its task follows the new interval or active flag.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from sqlalchemy import func, select

from spaceplus.api.dependencies import AdminUser, DbSession, Scheduler, Scraper
from spaceplus.api.middleware.errors import NotFoundError, ValidationAPIError
from spaceplus.api.schemas.common import ApiResponse, Page
from spaceplus.api.schemas.social import (
    ConnectionTestResult,
    ConvertResult,
    SamplePost,
    ScrapeOutcomeResponse,
    SocialPostResponse,
    SocialSourceCreate,
    SocialSourceDetail,
    SocialSourceResponse,
    SocialSourceUpdate,
)
from spaceplus.db.models import SocialPlatform, SocialPost, SocialSource

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/social-sources",
    tags=["admin", "social"],
    responses={
        401: {"description": "Admin authentication required"},
        403: {"description": "Admin role required"},
    },
)

RECENT_POSTS_LIMIT = 10
CONVERT_BATCH_SIZE = 10
SAMPLE_POSTS_LIMIT = 3


def parse_platform_filter(platform: str | None) -> SocialPlatform | None:
    """``None`` and ``"all"`` mean no filter; anything else must be a platform."""
    if not platform or platform == "all":
        return None
    try:
        return SocialPlatform(platform.lower())
    except ValueError as e:
        raise ValidationAPIError(f"Unsupported platform: {platform}") from e


async def _get_source(db: DbSession, source_id: UUID) -> SocialSource:
    source = await db.get(SocialSource, source_id)
    if source is None:
        raise NotFoundError("Social source", str(source_id))
    return source


async def _post_count(db: DbSession, source_id: UUID) -> int:
    return (
        await db.execute(
            select(func.count()).select_from(SocialPost).where(SocialPost.source_id == source_id)
        )
    ).scalar_one()


@router.get("")
async def list_sources(
    user: AdminUser,
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    platform: str | None = None,
    is_active: bool | None = None,
) -> ApiResponse[Page[SocialSourceResponse]]:
    """List sources, newest first, with their post counts."""
    conditions = []
    platform_filter = parse_platform_filter(platform)
    if platform_filter is not None:
        conditions.append(SocialSource.platform == platform_filter)
    if is_active is not None:
        conditions.append(SocialSource.is_active.is_(is_active))

    total = (
        await db.execute(select(func.count()).select_from(SocialSource).where(*conditions))
    ).scalar_one()

    result = await db.execute(
        select(SocialSource, func.count(SocialPost.post_id))
        .outerjoin(SocialPost, SocialPost.source_id == SocialSource.source_id)
        .where(*conditions)
        .group_by(SocialSource.source_id)
        .order_by(SocialSource.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = [
        SocialSourceResponse.from_source(source, post_count) for source, post_count in result.all()
    ]
    return ApiResponse(data=Page.build(items, total, page, page_size))


@router.post("")
async def create_source(
    body: SocialSourceCreate,
    user: AdminUser,
    db: DbSession,
    scheduler: Scheduler,
) -> ApiResponse[SocialSourceResponse]:
    source = SocialSource(**body.model_dump())
    db.add(source)
    await db.commit()
    await db.refresh(source)

    logger.info(
        "Social source %s (%s) created by %s",
        source.source_id,
        source.platform.value,
        user.email,
    )
    if source.is_active:
        await scheduler.reload_source(source.source_id)

    return ApiResponse(
        data=SocialSourceResponse.from_source(source),
        message="Social source created",
    )


@router.get("/{source_id}")
async def get_source(
    source_id: UUID,
    user: AdminUser,
    db: DbSession,
) -> ApiResponse[SocialSourceDetail]:
    """Source details with its ten most recent posts."""
    source = await _get_source(db, source_id)
    posts = await db.execute(
        select(SocialPost)
        .where(SocialPost.source_id == source_id)
        .order_by(SocialPost.published_at.desc())
        .limit(RECENT_POSTS_LIMIT)
    )
    base = SocialSourceResponse.from_source(source, await _post_count(db, source_id))
    detail = SocialSourceDetail(
        **base.model_dump(),
        recent_posts=[SocialPostResponse.model_validate(post) for post in posts.scalars().all()],
    )
    return ApiResponse(data=detail)


@router.patch("/{source_id}")
async def update_source(
    source_id: UUID,
    body: SocialSourceUpdate,
    user: AdminUser,
    db: DbSession,
    scheduler: Scheduler,
) -> ApiResponse[SocialSourceResponse]:
    source = await _get_source(db, source_id)
    for name, value in body.model_dump(exclude_unset=True).items():
        setattr(source, name, value)
    await db.commit()
    await db.refresh(source)

    logger.info("Social source %s updated by %s", source_id, user.email)
    await scheduler.reload_source(source_id)

    return ApiResponse(
        data=SocialSourceResponse.from_source(source),
        message="Social source updated",
    )


@router.delete("/{source_id}")
async def delete_source(
    source_id: UUID,
    user: AdminUser,
    db: DbSession,
    scheduler: Scheduler,
) -> ApiResponse[None]:
    """Delete a source together with its posts."""
    source = await _get_source(db, source_id)
    await db.delete(source)
    await db.commit()

    logger.info("Social source %s deleted by %s", source_id, user.email)
    await scheduler.reload_source(source_id)

    return ApiResponse(message="Social source deleted")


@router.post("/{source_id}/sync")
async def sync_source(
    source_id: UUID,
    user: AdminUser,
    db: DbSession,
    scheduler: Scheduler,
) -> ApiResponse[ScrapeOutcomeResponse]:
    """Scrape the source now."""
    await _get_source(db, source_id)
    outcome = await scheduler.trigger_scraping(source_id)
    return ApiResponse(
        success=outcome.success,
        data=ScrapeOutcomeResponse.model_validate(outcome),
        message=outcome.message,
    )


@router.post("/{source_id}/test")
async def test_source(
    source_id: UUID,
    user: AdminUser,
    db: DbSession,
    scraper: Scraper,
) -> ApiResponse[ConnectionTestResult]:
    """Scrape the source without storing anything."""
    source = await _get_source(db, source_id)
    result = await scraper.scrape_source(source)
    if not result.success:
        return ApiResponse(success=False, message=result.error)

    return ApiResponse(
        data=ConnectionTestResult(
            posts_count=len(result.posts),
            sample_posts=[
                SamplePost.model_validate(post) for post in result.posts[:SAMPLE_POSTS_LIMIT]
            ],
        ),
        message=f"Test succeeded, found {len(result.posts)} posts",
    )


@router.post("/{source_id}/convert")
async def convert_source_posts(
    source_id: UUID,
    user: AdminUser,
    db: DbSession,
    scraper: Scraper,
) -> ApiResponse[ConvertResult]:
    """Promote up to ten unprocessed posts of the source to news."""
    await _get_source(db, source_id)
    result = await db.execute(
        select(SocialPost.post_id)
        .where(SocialPost.source_id == source_id, SocialPost.is_processed.is_(False))
        .order_by(SocialPost.published_at.desc())
        .limit(CONVERT_BATCH_SIZE)
    )

    converted = 0
    for post_id in result.scalars().all():
        try:
            news_id = await scraper.convert_to_news(db, post_id)
        except Exception:
            logger.exception("Converting post %s to news failed", post_id)
            continue
        if news_id is not None:
            converted += 1
    await db.commit()

    logger.info("Converted %d posts of source %s to news", converted, source_id)
    return ApiResponse(
        data=ConvertResult(converted_count=converted),
        message=f"Converted {converted} posts to news",
    )
