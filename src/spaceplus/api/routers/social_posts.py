"""Admin review of scraped social posts."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from sqlalchemy import delete, func, select, update

from spaceplus.api.dependencies import AdminUser, DbSession, Scraper
from spaceplus.api.middleware.errors import NotFoundError
from spaceplus.api.routers.social_sources import parse_platform_filter
from spaceplus.api.schemas.common import ApiResponse, Page
from spaceplus.api.schemas.social import (
    PostBatchAction,
    PostBatchRequest,
    PostBatchResult,
    PostConversionResult,
    SocialPostResponse,
)
from spaceplus.db.models import News, SocialPost, SocialSource

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/social-posts",
    tags=["admin", "social"],
    responses={
        401: {"description": "Admin authentication required"},
        403: {"description": "Admin role required"},
    },
)


@router.get("")
async def list_posts(
    user: AdminUser,
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    source_id: UUID | None = None,
    platform: str | None = None,
    is_processed: bool | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> ApiResponse[Page[SocialPostResponse]]:
    """List posts, most recently published first."""
    conditions = []
    if source_id is not None:
        conditions.append(SocialPost.source_id == source_id)
    platform_filter = parse_platform_filter(platform)
    if platform_filter is not None:
        conditions.append(SocialPost.platform == platform_filter)
    if is_processed is not None:
        conditions.append(SocialPost.is_processed.is_(is_processed))
    if start_date is not None:
        conditions.append(SocialPost.published_at >= start_date)
    if end_date is not None:
        conditions.append(SocialPost.published_at <= end_date)

    total = (
        await db.execute(select(func.count()).select_from(SocialPost).where(*conditions))
    ).scalar_one()

    result = await db.execute(
        select(SocialPost, SocialSource.name)
        .join(SocialSource, SocialSource.source_id == SocialPost.source_id)
        .where(*conditions)
        .order_by(SocialPost.published_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = []
    for post, source_name in result.all():
        item = SocialPostResponse.model_validate(post)
        item.source_name = source_name
        items.append(item)

    return ApiResponse(data=Page.build(items, total, page, page_size))


@router.post("")
async def batch_posts(
    body: PostBatchRequest,
    user: AdminUser,
    db: DbSession,
    scraper: Scraper,
) -> ApiResponse[PostBatchResult]:
    """Apply an action to several posts at once."""
    post_ids = list(dict.fromkeys(body.post_ids))
    results: list[PostConversionResult] = []

    if body.action is PostBatchAction.CONVERT_TO_NEWS:
        for post_id in post_ids:
            try:
                news_id = await scraper.convert_to_news(db, post_id)
            except Exception as e:
                logger.exception("Converting post %s to news failed", post_id)
                results.append(
                    PostConversionResult(
                        post_id=post_id, success=False, error=str(e) or "Conversion failed"
                    )
                )
                continue
            if news_id is None:
                results.append(
                    PostConversionResult(
                        post_id=post_id,
                        success=False,
                        error="Post not found or already processed",
                    )
                )
            else:
                results.append(PostConversionResult(post_id=post_id, success=True, news_id=news_id))
        affected = sum(1 for r in results if r.success)
        message = f"Converted {affected}/{len(post_ids)} posts to news"

    elif body.action is PostBatchAction.MARK_PROCESSED:
        outcome = await db.execute(
            update(SocialPost)
            .where(SocialPost.post_id.in_(post_ids), SocialPost.is_processed.is_(False))
            .values(is_processed=True)
        )
        affected = outcome.rowcount
        message = f"Marked {affected} posts as processed"

    elif body.action is PostBatchAction.MARK_UNPROCESSED:
        outcome = await db.execute(
            update(SocialPost)
            .where(SocialPost.post_id.in_(post_ids))
            .values(is_processed=False, news_id=None)
        )
        affected = outcome.rowcount
        message = f"Marked {affected} posts as unprocessed"

    else:
        outcome = await db.execute(delete(SocialPost).where(SocialPost.post_id.in_(post_ids)))
        affected = outcome.rowcount
        message = f"Deleted {affected} posts"

    await db.commit()
    logger.info("Batch %s on %d posts by %s", body.action.value, len(post_ids), user.email)

    return ApiResponse(
        data=PostBatchResult(
            action=body.action,
            total_count=len(post_ids),
            affected_count=affected,
            results=results,
        ),
        message=message,
    )


@router.delete("/{post_id}")
async def delete_post(
    post_id: UUID,
    user: AdminUser,
    db: DbSession,
    delete_news: bool = False,
) -> ApiResponse[None]:
    """Delete a post, and with ``delete_news=true`` also the article made from it."""
    post = await db.get(SocialPost, post_id)
    if post is None:
        raise NotFoundError("Social post", str(post_id))

    news_id = post.news_id
    await db.delete(post)
    if delete_news and news_id is not None:
        await db.execute(delete(News).where(News.news_id == news_id))
    await db.commit()

    logger.info(
        "Social post %s deleted by %s (news %s %s)",
        post_id,
        user.email,
        news_id,
        "deleted" if delete_news and news_id else "kept",
    )
    return ApiResponse(message="Post deleted")
