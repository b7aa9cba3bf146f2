"""SpacePlus worker entry point.

Runs the social media scheduler outside the API process, for deployments
that set ``SPACEPLUS_SCHEDULER__ENABLED=false`` on the API. SIGTERM and
SIGINT stop the scheduler gracefully; the database engine is disposed on
the way out.

Environment (besides the usual SPACEPLUS_* settings):
    WORKER_ID                 name used in log lines (random by default)
    WORKER_SHUTDOWN_TIMEOUT   seconds allowed for the scheduler to stop
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, NoReturn

from spaceplus.services.social_scheduler import SocialScheduler

if TYPE_CHECKING:
    from spaceplus.core.config import Settings

logger = logging.getLogger(__name__)


def _random_worker_id() -> str:
    return f"worker-{uuid.uuid4().hex[:8]}"


@dataclass
class WorkerConfig:
    worker_id: str = field(default_factory=_random_worker_id)
    shutdown_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> WorkerConfig:
        return cls(
            worker_id=os.environ.get("WORKER_ID") or _random_worker_id(),
            shutdown_timeout=float(os.environ.get("WORKER_SHUTDOWN_TIMEOUT", "30")),
        )


def format_uptime(seconds: int) -> str:
    """``3725`` -> ``1h 2m 5s``; leading zero units are dropped."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class Worker:
    """Keeps a SocialScheduler running until stop() is called.

        worker = Worker(SocialScheduler.from_settings(settings))
        await worker.start()   # returns after stop()
    """

    def __init__(self, scheduler: SocialScheduler, config: WorkerConfig | None = None) -> None:
        self.scheduler = scheduler
        self.config = config or WorkerConfig()
        self._stopping = asyncio.Event()
        self._started_at: datetime | None = None

    @property
    def uptime(self) -> str:
        if self._started_at is None:
            return "0s"
        return format_uptime(int((datetime.now(UTC) - self._started_at).total_seconds()))

    async def start(self) -> None:
        self._started_at = datetime.now(UTC)
        logger.info("Worker %s starting scheduler", self.config.worker_id)

        await self.scheduler.start()
        try:
            await self._stopping.wait()
        finally:
            await self._stop_scheduler()
            logger.info("Worker %s stopped after %s", self.config.worker_id, self.uptime)

    async def stop(self) -> None:
        logger.info("Worker %s shutting down", self.config.worker_id)
        self._stopping.set()

    async def _stop_scheduler(self) -> None:
        try:
            await asyncio.wait_for(self.scheduler.stop(), timeout=self.config.shutdown_timeout)
        except TimeoutError:
            logger.warning(
                "Scheduler still running after %.1fs, abandoning it", self.config.shutdown_timeout
            )


async def _async_main(settings: Settings, shutdown_event: asyncio.Event) -> None:
    """Run a worker until ``shutdown_event`` is set, then release the engine."""
    from spaceplus.db import close_engine

    config = WorkerConfig.from_env()
    worker = Worker(SocialScheduler.from_settings(settings), config)
    worker_task = asyncio.create_task(worker.start())

    shutdown_wait = asyncio.create_task(shutdown_event.wait())
    try:
        # A scheduler that fails to start ends the worker without a signal
        await asyncio.wait({worker_task, shutdown_wait}, return_when=asyncio.FIRST_COMPLETED)
        await worker.stop()
        await asyncio.wait_for(worker_task, timeout=config.shutdown_timeout)
    except TimeoutError:
        logger.warning("Worker %s did not stop in time, cancelling", config.worker_id)
        worker_task.cancel()
    finally:
        shutdown_wait.cancel()
        await close_engine()


async def _serve(settings: Settings) -> None:
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(signum, shutdown_event.set)
    await _async_main(settings, shutdown_event)


def run() -> NoReturn:
    """Console entry point (``spaceplus-worker``)."""
    from spaceplus.core.log import configure_logging
    from spaceplus.core.settings import get_settings

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("SpacePlus worker starting (environment=%s)", settings.environment.value)

    try:
        asyncio.run(_serve(settings))
    except Exception:
        logger.exception("Worker crashed")
        sys.exit(1)

    logger.info("SpacePlus worker shutdown complete")
    sys.exit(0)


if __name__ == "__main__":
    run()
