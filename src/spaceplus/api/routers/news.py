"""Public news endpoints.

Only published articles are visible: ``published_at`` must be set and not in
the future.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Query
from sqlalchemy import func, select, update

from spaceplus.api.dependencies import DbSession
from spaceplus.api.middleware.errors import NotFoundError
from spaceplus.api.schemas.common import ApiResponse, Page
from spaceplus.api.schemas.news import NewsDetail, NewsSummary
from spaceplus.db.models import News

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/news", tags=["news"])

RELATED_NEWS_LIMIT = 3


def _published(now: datetime):
    return (News.published_at.is_not(None), News.published_at <= now)


@router.get("")
async def list_news(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    category: str | None = None,
) -> ApiResponse[Page[NewsSummary]]:
    """List published articles, newest first."""
    now = datetime.now(UTC)
    conditions = list(_published(now))
    if category and category != "all":
        conditions.append(News.category == category)

    total = (
        await db.execute(select(func.count()).select_from(News).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        select(News)
        .where(*conditions)
        .order_by(News.published_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = [NewsSummary.model_validate(row) for row in result.scalars().all()]

    return ApiResponse(data=Page.build(items, total, page, page_size))


@router.get("/{slug}")
async def get_news(slug: str, db: DbSession) -> ApiResponse[NewsDetail]:
    """Get a published article by slug and count the view.

    The response includes up to three other published articles from the
    same category.
    """
    now = datetime.now(UTC)
    result = await db.execute(select(News).where(News.slug == slug, *_published(now)))
    news = result.scalar_one_or_none()
    if news is None:
        raise NotFoundError("News", slug)

    views = (news.views or 0) + 1
    await db.execute(
        update(News).where(News.news_id == news.news_id).values(views=News.views + 1)
    )
    await db.commit()

    related = await db.execute(
        select(News)
        .where(
            News.category == news.category,
            News.news_id != news.news_id,
            *_published(now),
        )
        .order_by(News.published_at.desc())
        .limit(RELATED_NEWS_LIMIT)
    )

    detail = NewsDetail.model_validate(news)
    detail.views = views
    detail.related_news = [NewsSummary.model_validate(row) for row in related.scalars().all()]
    return ApiResponse(data=detail)
