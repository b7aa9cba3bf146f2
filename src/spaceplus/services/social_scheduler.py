"""Periodic social media scraping.

The scheduler runs inside the API process (or the standalone worker) as a set
of asyncio tasks:
- ``source_<id>``: one per active source, scraping it every sync interval
- ``main``: an hourly catch-up pass over sources whose last sync is stale

Each scrape stores new posts and, for sources configured with
``autoConvertToNews``, promotes a batch of unprocessed posts to news.
A per-source lock ensures a manual trigger and a scheduled run never scrape
the same source concurrently; the later caller is told a scrape is in
progress instead.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import or_, select

from spaceplus.db.models import SocialPost, SocialSource
from spaceplus.services.social_scraper import SocialScraper

if TYPE_CHECKING:
    import uuid
    from collections.abc import Awaitable, Callable
    from contextlib import AbstractAsyncContextManager

    from sqlalchemy.ext.asyncio import AsyncSession

    from spaceplus.core.config import Settings

    SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

logger = logging.getLogger(__name__)

MAIN_TASK_KEY = "main"
MINUTE = 60
HOUR = 3600
DAY = 86400


@dataclass
class ScrapeOutcome:
    """Result of scraping one source."""

    source_id: uuid.UUID
    success: bool
    message: str
    posts_found: int = 0
    posts_saved: int = 0
    news_created: int = 0


@dataclass(frozen=True)
class SchedulerStatus:
    """Snapshot of the scheduler for the admin API."""

    is_running: bool
    active_tasks: int
    task_list: list[str]
    intervals: dict[str, int] = field(default_factory=dict)


def schedule_interval(sync_interval: int) -> int:
    """Round a source's sync interval to the period actually scheduled.

    Under a minute runs every minute, under an hour runs every whole number
    of minutes, under a day every whole number of hours, otherwise daily.
    """
    if sync_interval < MINUTE:
        return MINUTE
    if sync_interval < HOUR:
        return (sync_interval // MINUTE) * MINUTE
    if sync_interval < DAY:
        return (sync_interval // HOUR) * HOUR
    return DAY


def source_task_key(source_id: uuid.UUID | str) -> str:
    return f"source_{source_id}"


class SocialScheduler:
    """Schedules and runs social source scrapes.

    Example:
        scheduler = SocialScheduler(get_async_session)
        await scheduler.start()
        outcome = await scheduler.trigger_scraping(source_id)
        await scheduler.stop()
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        scraper: SocialScraper | None = None,
        *,
        main_interval: int = HOUR,
        stale_after: int = HOUR,
        auto_convert_batch_size: int = 10,
        restart_delay: float = 1.0,
    ) -> None:
        """Initialize the scheduler.

        Args:
            session_factory: Callable returning an async context manager that
                yields a database session. Defaults to get_async_session.
            scraper: Scraper used for every source.
            main_interval: Seconds between catch-up passes.
            stale_after: Seconds after which a source counts as out of date.
            auto_convert_batch_size: Maximum posts promoted per scrape.
            restart_delay: Seconds to wait between stop and start on restart.
        """
        if session_factory is None:
            from spaceplus.db import get_async_session

            session_factory = get_async_session

        self._session_factory = session_factory
        self._scraper = scraper or SocialScraper()
        self._main_interval = main_interval
        self._stale_after = timedelta(seconds=stale_after)
        self._auto_convert_batch_size = auto_convert_batch_size
        self._restart_delay = restart_delay

        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._intervals: dict[str, int] = {}
        self._locks: dict[uuid.UUID, asyncio.Lock] = {}
        self._running = False
        # Bumped by stop() so a start() still loading sources can tell it was cancelled
        self._generation = 0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: SessionFactory | None = None,
        scraper: SocialScraper | None = None,
    ) -> SocialScheduler:
        """Build a scheduler from application settings."""
        return cls(
            session_factory,
            scraper or SocialScraper(settings=settings.scraper),
            main_interval=settings.scheduler.main_interval_seconds,
            stale_after=settings.scheduler.stale_after_seconds,
            auto_convert_batch_size=settings.scheduler.auto_convert_batch_size,
            restart_delay=settings.scheduler.restart_delay_seconds,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def scraper(self) -> SocialScraper:
        return self._scraper

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start scheduling. Calling start on a running scheduler does nothing."""
        if self._running:
            logger.info("Social scheduler already running")
            return

        logger.info("Starting social scheduler")
        self._running = True
        generation = self._generation

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(SocialSource).where(SocialSource.is_active.is_(True))
                )
                sources = list(result.scalars().all())
        except Exception:
            logger.exception("Failed to load active social sources")
            sources = []

        if generation != self._generation:
            logger.info("Social scheduler stopped while loading sources, not scheduling")
            return

        for source in sources:
            await self._schedule_source(source)
        logger.info("Loaded %d active social sources", len(sources))

        await self._schedule(MAIN_TASK_KEY, self._main_interval, self.run_scheduled_scraping)
        logger.info("Social scheduler started with %d tasks", len(self._tasks))

    async def stop(self) -> None:
        """Cancel every scheduled task and wait for them to finish."""
        logger.info("Stopping social scheduler")
        self._generation += 1
        self._running = False
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._tasks.clear()
        self._intervals.clear()
        logger.info("Social scheduler stopped")

    async def restart(self) -> None:
        await self.stop()
        await asyncio.sleep(self._restart_delay)
        await self.start()

    def get_status(self) -> SchedulerStatus:
        return SchedulerStatus(
            is_running=self._running,
            active_tasks=len(self._tasks),
            task_list=list(self._tasks),
            intervals=dict(self._intervals),
        )

    # -------------------------------------------------------------------------
    # Task management
    # -------------------------------------------------------------------------

    async def _schedule_source(self, source: SocialSource) -> None:
        interval = schedule_interval(source.sync_interval)
        await self._schedule(
            source_task_key(source.source_id),
            interval,
            functools.partial(self.scrape_source, source.source_id),
        )
        logger.info(
            "Scheduled source %s (%s) every %d seconds",
            source.name,
            source.source_id,
            interval,
        )

    async def _schedule(
        self, key: str, interval: int, fn: Callable[[], Awaitable[object]]
    ) -> None:
        await self._cancel_task(key)

        self._tasks[key] = asyncio.create_task(self._run_periodic(key, interval, fn), name=key)
        self._intervals[key] = interval

    async def _cancel_task(self, key: str) -> bool:
        task = self._tasks.pop(key, None)
        self._intervals.pop(key, None)
        if task is None:
            return False
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("Removed scheduled task %s", key)
        return True

    async def _run_periodic(
        self,
        key: str,
        interval: int,
        fn: Callable[[], Awaitable[object]],
    ) -> None:
        while True:
            await asyncio.sleep(interval)
            logger.debug("Running scheduled task %s", key)
            try:
                await fn()
            except Exception:
                logger.exception("Scheduled task %s failed", key)

    # -------------------------------------------------------------------------
    # Scraping
    # -------------------------------------------------------------------------

    async def run_scheduled_scraping(self) -> list[ScrapeOutcome]:
        """Scrape every active source not synced within ``stale_after``."""
        cutoff = datetime.now(UTC) - self._stale_after
        async with self._session_factory() as session:
            result = await session.execute(
                select(SocialSource.source_id).where(
                    SocialSource.is_active.is_(True),
                    or_(SocialSource.last_sync.is_(None), SocialSource.last_sync < cutoff),
                )
            )
            source_ids = list(result.scalars().all())

        logger.info("Found %d social sources due for sync", len(source_ids))
        return [await self._scrape_guarded(source_id) for source_id in source_ids]

    async def trigger_scraping(self, source_id: uuid.UUID) -> ScrapeOutcome:
        """Scrape a source now, outside its schedule."""
        logger.info("Manual scrape requested for source %s", source_id)
        return await self._scrape_guarded(source_id)

    async def sync_all(self) -> list[ScrapeOutcome]:
        """Scrape every active source now."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(SocialSource.source_id).where(SocialSource.is_active.is_(True))
            )
            source_ids = list(result.scalars().all())

        logger.info("Syncing all %d active social sources", len(source_ids))
        return [await self._scrape_guarded(source_id) for source_id in source_ids]

    async def reload_source(self, source_id: uuid.UUID) -> None:
        """Pick up changes to a source.

        An active source is (re)scheduled with its current interval; an
        inactive or deleted source loses its task. While the scheduler is
        stopped nothing is scheduled.
        """
        async with self._session_factory() as session:
            source = await session.get(SocialSource, source_id)

        if source is not None and source.is_active and self._running:
            await self._schedule_source(source)
            return

        await self._cancel_task(source_task_key(source_id))
        if source is None or not source.is_active:
            self._locks.pop(source_id, None)

    async def _scrape_guarded(self, source_id: uuid.UUID) -> ScrapeOutcome:
        try:
            return await self.scrape_source(source_id)
        except Exception as e:
            logger.exception("Scrape of source %s failed", source_id)
            return ScrapeOutcome(
                source_id=source_id, success=False, message=str(e) or "Scrape failed"
            )

    async def scrape_source(self, source_id: uuid.UUID) -> ScrapeOutcome:
        """Scrape one source, store new posts and auto-convert if configured.

        Missing and inactive sources are reported in the outcome. If the same
        source is already being scraped the call returns immediately.
        """
        lock = self._locks.setdefault(source_id, asyncio.Lock())
        if lock.locked():
            logger.info("Scrape of source %s already in progress, skipping", source_id)
            return ScrapeOutcome(
                source_id=source_id,
                success=False,
                message="Scrape already in progress",
            )

        async with lock:
            return await self._scrape_source_locked(source_id)

    async def _scrape_source_locked(self, source_id: uuid.UUID) -> ScrapeOutcome:
        async with self._session_factory() as session:
            source = await session.get(SocialSource, source_id)
            if source is None:
                logger.info("Social source %s not found", source_id)
                return ScrapeOutcome(source_id=source_id, success=False, message="Source not found")
            if not source.is_active:
                logger.info("Social source %s is inactive", source_id)
                return ScrapeOutcome(
                    source_id=source_id, success=False, message="Source is inactive"
                )

            logger.info("Scraping source %s (%s)", source.name, source.platform)
            result = await self._scraper.scrape_source(source)
            source.last_sync = datetime.now(UTC)

            if not result.success:
                await session.commit()
                logger.warning("Scrape of source %s failed: %s", source.name, result.error)
                return ScrapeOutcome(
                    source_id=source_id,
                    success=False,
                    message=result.error or "Scraping failed",
                )

            created = await self._scraper.save_posts(
                session, source.source_id, source.platform, result.posts
            )
            news_created = 0
            if source.auto_convert_to_news:
                news_created = await self._auto_convert(session, source.source_id)
            await session.commit()

        logger.info(
            "Scrape of source %s complete: found=%d saved=%d news=%d",
            source_id,
            len(result.posts),
            len(created),
            news_created,
        )
        return ScrapeOutcome(
            source_id=source_id,
            success=True,
            message=f"Scraped {len(result.posts)} posts, {len(created)} new",
            posts_found=len(result.posts),
            posts_saved=len(created),
            news_created=news_created,
        )

    async def _auto_convert(self, session: AsyncSession, source_id: uuid.UUID) -> int:
        result = await session.execute(
            select(SocialPost.post_id)
            .where(SocialPost.source_id == source_id, SocialPost.is_processed.is_(False))
            .order_by(SocialPost.published_at.desc())
            .limit(self._auto_convert_batch_size)
        )
        post_ids = list(result.scalars().all())

        converted = 0
        for post_id in post_ids:
            try:
                news_id = await self._scraper.convert_to_news(session, post_id)
            except Exception:
                # The post stays unprocessed and is retried on the next pass
                logger.exception("Auto-convert of post %s failed", post_id)
                continue
            if news_id is not None:
                converted += 1
                logger.info("Post %s converted to news %s", post_id, news_id)
        return converted
