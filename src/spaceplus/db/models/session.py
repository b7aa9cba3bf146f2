"""Admin CMS sessions.

A row per login. The ``admin_token`` cookie carries the raw token; the table
only ever sees its SHA-256 digest, so a leaked dump cannot be replayed.
Logout sets ``revoked_at`` rather than deleting the row.
"""

from __future__ import annotations

import uuid  # noqa: TC003 - required at runtime for SQLAlchemy type resolution
from datetime import UTC, datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from spaceplus.db.models.base import Base, OptionalTimestampTZ, TimestampTZ, UUIDPrimaryKey


class Session(Base):
    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_admin_user_id", "admin_user_id"),
        Index("ix_sessions_expires_at", "expires_at"),
    )

    session_id: Mapped[UUIDPrimaryKey]
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    admin_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("admin_users.admin_user_id", ondelete="CASCADE"),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    expires_at: Mapped[TimestampTZ]
    last_activity_at: Mapped[TimestampTZ]
    revoked_at: Mapped[OptionalTimestampTZ]
    revocation_reason: Mapped[str | None] = mapped_column(String(255))

    # Client details at login time
    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    @property
    def is_expired(self) -> bool:
        return datetime.now(UTC) > self.expires_at

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    @property
    def is_valid(self) -> bool:
        """Active, unexpired and never revoked."""
        return self.is_active and not self.is_expired and not self.is_revoked
