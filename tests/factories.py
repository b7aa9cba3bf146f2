"""Test data factories for SpacePlus.

Builders for transient ORM rows and for the AsyncSession / Result mocks the
unit and API tests script their database access with.
"""

import uuid
from contextlib import asynccontextmanager, nullcontext
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from spaceplus.db.models import (
    AdminRole,
    AdminUser,
    Case,
    News,
    SocialPlatform,
    SocialPost,
    SocialSource,
)
from spaceplus.services.session import hash_password


def make_result(
    *,
    scalar: Any = None,
    scalars: list[Any] | None = None,
    rows: list[tuple] | None = None,
    rowcount: int = 0,
) -> MagicMock:
    """Build a stand-in for a SQLAlchemy Result.

    Args:
        scalar: Returned by scalar_one() and scalar_one_or_none().
        scalars: Returned by scalars().all().
        rows: Returned by all().
        rowcount: Rows affected by an UPDATE/DELETE.
    """
    result = MagicMock()
    result.scalar_one.return_value = scalar
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    result.all.return_value = rows or []
    result.rowcount = rowcount
    return result


def make_db_session() -> AsyncMock:
    """AsyncSession mock; ``add`` and ``begin_nested`` are synchronous like the real ones.

    ``begin_nested()`` yields a no-op savepoint, so errors raised inside it
    propagate unchanged.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.begin_nested = MagicMock(side_effect=lambda: nullcontext())
    session.execute = AsyncMock(return_value=make_result())
    session.get = AsyncMock(return_value=None)
    return session


def session_factory_for(session: AsyncMock):
    """Session factory yielding the given mock, as SocialScheduler expects."""

    @asynccontextmanager
    async def factory():
        yield session

    return factory


def make_source(**overrides: Any) -> SocialSource:
    """Transient SocialSource; Instagram with a token unless overridden."""
    values: dict[str, Any] = {
        "source_id": uuid.uuid4(),
        "name": "SpacePlus Instagram",
        "platform": SocialPlatform.INSTAGRAM,
        "username": "spaceplus",
        "access_token": "ig-token",
        "webhook_url": None,
        "is_active": True,
        "sync_interval": 3600,
        "config": {},
        "last_sync": None,
        "created_at": datetime(2026, 10, 1, tzinfo=UTC),
        "updated_at": datetime(2026, 10, 1, tzinfo=UTC),
    }
    values.update(overrides)
    return SocialSource(**values)


def make_post(source: SocialSource | None = None, **overrides: Any) -> SocialPost:
    """Transient, unprocessed SocialPost."""
    source_id = source.source_id if source is not None else uuid.uuid4()
    values: dict[str, Any] = {
        "post_id": uuid.uuid4(),
        "source_id": source_id,
        "platform": SocialPlatform.INSTAGRAM,
        "platform_id": uuid.uuid4().hex[:10],
        "title": None,
        "content": "We reached orbit today #launch #space",
        "media_urls": ["https://cdn.example/orbit.jpg"],
        "author_name": None,
        "author_avatar": None,
        "published_at": datetime(2026, 10, 5, 9, 0, tzinfo=UTC),
        "likes": 0,
        "comments": 0,
        "shares": 0,
        "hashtags": ["launch", "space"],
        "location": None,
        "is_processed": False,
        "news_id": None,
        "created_at": datetime(2026, 10, 5, 9, 5, tzinfo=UTC),
        "updated_at": datetime(2026, 10, 5, 9, 5, tzinfo=UTC),
    }
    values.update(overrides)
    post = SocialPost(**values)
    if source is not None:
        post.source = source
    return post


def make_news(**overrides: Any) -> News:
    """Transient, published News article."""
    values: dict[str, Any] = {
        "news_id": uuid.uuid4(),
        "slug": f"orbit-{uuid.uuid4().hex[:6]}",
        "title": "We reached orbit",
        "excerpt": "We reached orbit...",
        "content": "<p>We reached orbit</p>",
        "category": "social",
        "author_name": "SpacePlus",
        "author_avatar": None,
        "image": None,
        "tags": ["space"],
        "views": 3,
        "read_time": 2,
        "published_at": datetime(2026, 10, 5, 9, 0, tzinfo=UTC),
        "source": "instagram",
        "source_url": "https://instagram.com/p/1",
        "source_id": "1",
        "auto_generated": True,
    }
    values.update(overrides)
    return News(**values)


def make_case(**overrides: Any) -> Case:
    """Transient, published Case."""
    values: dict[str, Any] = {
        "case_id": uuid.uuid4(),
        "slug": f"case-{uuid.uuid4().hex[:6]}",
        "title": "Satellite ground station",
        "client": "Orbital Ltd",
        "industry": "aerospace",
        "summary": "A ground station in six weeks",
        "content": "<p>Ground station</p>",
        "image": None,
        "tags": ["ground"],
        "published_at": datetime(2026, 10, 1, 9, 0, tzinfo=UTC),
    }
    values.update(overrides)
    return Case(**values)


def make_admin(password: str = "correct horse", **overrides: Any) -> AdminUser:
    """Transient, active AdminUser whose password is ``password``."""
    values: dict[str, Any] = {
        "admin_user_id": uuid.uuid4(),
        "email": "admin@spaceplus-worldwide.com",
        "name": "Site Admin",
        "password_hash": hash_password(password),
        "role": AdminRole.ADMIN,
        "is_active": True,
        "last_login_at": None,
    }
    values.update(overrides)
    return AdminUser(**values)
