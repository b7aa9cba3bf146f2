"""SpacePlus API service.

FastAPI application providing:
- Public news listing and article pages
- Admin session login
- Social media source, post and scheduler administration
- Health checks for container orchestration

The social scheduler is owned by the application and runs inside the API
process unless disabled in settings (see ``spaceplus.worker`` for running it
standalone).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spaceplus.api.middleware import (
    ErrorHandlerMiddleware,
    RequestIDMiddleware,
    SessionAuthMiddleware,
    register_exception_handlers,
)
from spaceplus.api.routers import (
    auth_router,
    cases_router,
    health_router,
    news_router,
    social_posts_router,
    social_scheduler_router,
    social_sources_router,
)
from spaceplus.services.social_scheduler import SocialScheduler

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from spaceplus.core.config import Settings

logger = logging.getLogger(__name__)

API_TITLE = "SpacePlus API"
API_DESCRIPTION = """
SpacePlus website backend.

## Namespaces

- **/api/news/** - Published news (public)
- **/api/auth/** - Admin login and logout
- **/api/admin/social-sources/** - Social media sources (admin)
- **/api/admin/social-posts/** - Scraped posts (admin)
- **/api/admin/social-scheduler** - Scraping scheduler (admin)

## Documentation

- OpenAPI document: `/api/openapi.json`
- Swagger UI: `/api/docs`
"""

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:8000"]


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. Without settings the app uses
            development defaults and never starts the scheduler on its own,
            which is what tests want.

    Returns:
        Configured FastAPI application.
    """
    version = settings.app_version if settings else "1.0.0"

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=version,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=_lifespan,
    )

    app.state.settings = settings
    app.state.social_scheduler = (
        SocialScheduler.from_settings(settings) if settings else SocialScheduler()
    )

    _add_middleware(app, settings)
    register_exception_handlers(app)
    _include_routers(app)

    logger.info("SpacePlus API application created (version=%s)", version)
    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the scheduler after a short delay and stop it on shutdown."""
    settings: Settings | None = app.state.settings
    scheduler: SocialScheduler = app.state.social_scheduler
    startup_task: asyncio.Task[None] | None = None

    if settings is not None and settings.scheduler.enabled:
        startup_task = asyncio.create_task(
            _delayed_start(scheduler, settings.scheduler.startup_delay_seconds),
            name="scheduler-startup",
        )
    else:
        logger.info("Social scheduler not started with the API")

    try:
        yield
    finally:
        if startup_task is not None and not startup_task.done():
            startup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await startup_task
        if scheduler.is_running:
            await scheduler.stop()

        from spaceplus.db import close_engine

        await close_engine()
        logger.info("SpacePlus API shutdown complete")


async def _delayed_start(scheduler: SocialScheduler, delay: float) -> None:
    # Let the server finish binding before the first scrapes hit the database
    await asyncio.sleep(delay)
    try:
        await scheduler.start()
    except Exception:
        logger.exception("Social scheduler failed to start")


def _add_middleware(app: FastAPI, settings: Settings | None) -> None:
    """Add middleware to the application.

    The last middleware added is the outermost: CORS wraps request ID
    tracking, which wraps error handling, which wraps session resolution.
    """
    from spaceplus.db import get_async_session

    cookie_name = settings.auth.cookie_name if settings else "admin_token"
    app.add_middleware(
        SessionAuthMiddleware,
        session_factory=get_async_session,
        cookie_name=cookie_name,
    )

    app.add_middleware(ErrorHandlerMiddleware)

    app.add_middleware(RequestIDMiddleware)

    allowed_origins = settings.cors_origins if settings else DEFAULT_CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


def _include_routers(app: FastAPI) -> None:
    """Mount every router under /api."""
    app.include_router(health_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(news_router, prefix="/api")
    app.include_router(cases_router, prefix="/api")
    app.include_router(social_sources_router, prefix="/api")
    app.include_router(social_posts_router, prefix="/api")
    app.include_router(social_scheduler_router, prefix="/api")
