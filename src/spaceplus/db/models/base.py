"""Declarative base, shared column types and enums.

Constraint names follow NAMING_CONVENTION so Alembic revisions can refer
to them by name.
"""

import enum
import uuid
from datetime import datetime
from typing import Annotated

from sqlalchemy import DateTime, Enum, MetaData, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

UUIDPrimaryKey = Annotated[
    uuid.UUID,
    mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
]

TimestampTZ = Annotated[
    datetime,
    mapped_column(DateTime(timezone=True), server_default=text("now()")),
]

OptionalTimestampTZ = Annotated[
    datetime | None,
    mapped_column(DateTime(timezone=True), nullable=True),
]


class Base(DeclarativeBase):
    """Declarative base for all SpacePlus models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def pg_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Build a PostgreSQL enum column type that stores member values."""
    return Enum(
        enum_cls,
        name=name,
        create_constraint=True,
        values_callable=lambda members: [m.value for m in members],
    )


class AdminRole(enum.Enum):
    """Roles an admin account can hold.

    Values:
        ADMIN: Full CMS access, including social media automation
        HR: Job postings only
        EDITOR: News, cases and homepage content
    """

    ADMIN = "admin"
    HR = "hr"
    EDITOR = "editor"


class SocialPlatform(enum.Enum):
    """Social platforms a source can be configured for.

    Only Instagram and WeChat have scrapers; Weibo and Twitter sources can be
    stored but scraping them reports an unsupported platform.
    """

    INSTAGRAM = "instagram"
    WECHAT = "wechat"
    WEIBO = "weibo"
    TWITTER = "twitter"
