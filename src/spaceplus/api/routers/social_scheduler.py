"""Admin control of the social media scheduler."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy import func, select

from spaceplus.api.dependencies import AdminUser, DbSession, Scheduler
from spaceplus.api.schemas.common import ApiResponse
from spaceplus.api.schemas.social import (
    RecentSync,
    SchedulerAction,
    SchedulerActionRequest,
    SchedulerOverview,
    SchedulerStatistics,
    SchedulerStatusResponse,
    ScrapeOutcomeResponse,
    SyncAllResult,
)
from spaceplus.db.models import SocialPost, SocialSource

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/social-scheduler",
    tags=["admin", "social"],
    responses={
        401: {"description": "Admin authentication required"},
        403: {"description": "Admin role required"},
    },
)

RECENT_SYNCS_LIMIT = 5


async def _count(db: DbSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one()


@router.get("")
async def get_scheduler_overview(
    user: AdminUser,
    db: DbSession,
    scheduler: Scheduler,
) -> ApiResponse[SchedulerOverview]:
    """Scheduler status, ingestion statistics and the most recent syncs."""
    status = scheduler.get_status()

    statistics = SchedulerStatistics(
        total_sources=await _count(db, select(func.count()).select_from(SocialSource)),
        active_sources=await _count(
            db,
            select(func.count()).select_from(SocialSource).where(SocialSource.is_active.is_(True)),
        ),
        total_posts=await _count(db, select(func.count()).select_from(SocialPost)),
        unprocessed_posts=await _count(
            db,
            select(func.count()).select_from(SocialPost).where(SocialPost.is_processed.is_(False)),
        ),
    )

    result = await db.execute(
        select(SocialSource)
        .where(SocialSource.last_sync.is_not(None))
        .order_by(SocialSource.last_sync.desc())
        .limit(RECENT_SYNCS_LIMIT)
    )
    recent_syncs = [
        RecentSync(
            source_id=source.source_id,
            name=source.name,
            platform=source.platform,
            last_sync=source.last_sync,
            is_active=source.is_active,
        )
        for source in result.scalars().all()
    ]

    return ApiResponse(
        data=SchedulerOverview(
            scheduler=SchedulerStatusResponse.model_validate(status),
            statistics=statistics,
            recent_syncs=recent_syncs,
        )
    )


@router.post("")
async def control_scheduler(
    body: SchedulerActionRequest,
    user: AdminUser,
    scheduler: Scheduler,
) -> ApiResponse[SyncAllResult]:
    """Start, stop, restart the scheduler, or sync every active source now.

    Unknown actions are rejected with 400 by request validation.
    """
    logger.info("Scheduler action %s requested by %s", body.action.value, user.email)

    if body.action is SchedulerAction.START:
        await scheduler.start()
        return ApiResponse(message="Scheduler started")

    if body.action is SchedulerAction.STOP:
        await scheduler.stop()
        return ApiResponse(message="Scheduler stopped")

    if body.action is SchedulerAction.RESTART:
        await scheduler.restart()
        return ApiResponse(message="Scheduler restarted")

    outcomes = await scheduler.sync_all()
    success_count = sum(1 for outcome in outcomes if outcome.success)
    return ApiResponse(
        data=SyncAllResult(
            total_sources=len(outcomes),
            success_count=success_count,
            results=[ScrapeOutcomeResponse.model_validate(outcome) for outcome in outcomes],
        ),
        message=f"Sync complete, succeeded: {success_count}/{len(outcomes)}",
    )
