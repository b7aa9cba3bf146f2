"""Shared FastAPI dependencies: database session, scheduler, scraper, auth."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from spaceplus.api.middleware.auth import AuthenticatedUser, require_admin_user
from spaceplus.services.social_scheduler import SocialScheduler
from spaceplus.services.social_scraper import SocialScraper


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for one request."""
    from spaceplus.db import get_async_session

    async with get_async_session() as session:
        yield session


def get_social_scheduler(request: Request) -> SocialScheduler:
    """The scheduler owned by the application."""
    return request.app.state.social_scheduler


def get_social_scraper(
    scheduler: Annotated[SocialScheduler, Depends(get_social_scheduler)],
) -> SocialScraper:
    return scheduler.scraper


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Scheduler = Annotated[SocialScheduler, Depends(get_social_scheduler)]
Scraper = Annotated[SocialScraper, Depends(get_social_scraper)]

# Social media automation is restricted to the admin role
AdminUser = Annotated[AuthenticatedUser, Depends(require_admin_user)]
