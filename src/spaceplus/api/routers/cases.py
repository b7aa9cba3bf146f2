"""Public case study endpoints.

Like news, a case is visible once ``published_at`` is set and not in the
future. Editing cases happens outside this API.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Query
from sqlalchemy import func, select

from spaceplus.api.dependencies import DbSession
from spaceplus.api.middleware.errors import NotFoundError
from spaceplus.api.schemas.cases import CaseDetail, CaseSummary
from spaceplus.api.schemas.common import ApiResponse, Page
from spaceplus.db.models import Case

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cases", tags=["cases"])

RELATED_CASES_LIMIT = 3


def _published(now: datetime):
    return (Case.published_at.is_not(None), Case.published_at <= now)


@router.get("")
async def list_cases(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 12,
    industry: str | None = None,
) -> ApiResponse[Page[CaseSummary]]:
    """List published cases, newest first."""
    conditions = list(_published(datetime.now(UTC)))
    if industry and industry != "all":
        conditions.append(Case.industry == industry)

    total = (
        await db.execute(select(func.count()).select_from(Case).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        select(Case)
        .where(*conditions)
        .order_by(Case.published_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = [CaseSummary.model_validate(row) for row in result.scalars().all()]

    return ApiResponse(data=Page.build(items, total, page, page_size))


@router.get("/{slug}")
async def get_case(slug: str, db: DbSession) -> ApiResponse[CaseDetail]:
    """Get a published case by slug, with up to three from the same industry."""
    now = datetime.now(UTC)
    result = await db.execute(select(Case).where(Case.slug == slug, *_published(now)))
    case = result.scalar_one_or_none()
    if case is None:
        raise NotFoundError("Case", slug)

    related = await db.execute(
        select(Case)
        .where(Case.industry == case.industry, Case.case_id != case.case_id, *_published(now))
        .order_by(Case.published_at.desc())
        .limit(RELATED_CASES_LIMIT)
    )

    detail = CaseDetail.model_validate(case)
    detail.related_cases = [CaseSummary.model_validate(row) for row in related.scalars().all()]
    return ApiResponse(data=detail)
