"""Account models: CMS admin users and public site users."""

from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from spaceplus.db.models.base import (
    AdminRole,
    Base,
    OptionalTimestampTZ,
    TimestampTZ,
    UUIDPrimaryKey,
    pg_enum,
)


class AdminUser(Base):
    """CMS operator account.

    Admin users sign in to the CMS with email and password. The role decides
    which admin sections are reachable; social media automation is admin-only.
    """

    __tablename__ = "admin_users"

    admin_user_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # scrypt hash, see spaceplus.services.session.hash_password
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[AdminRole] = mapped_column(
        pg_enum(AdminRole, "admin_role"),
        default=AdminRole.EDITOR,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[OptionalTimestampTZ]


class User(Base):
    """Public site account (applicants and newsletter subscribers)."""

    __tablename__ = "users"

    user_id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[TimestampTZ]

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), default="user", nullable=False)
