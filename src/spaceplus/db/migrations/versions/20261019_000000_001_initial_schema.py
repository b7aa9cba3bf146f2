"""Initial schema.

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

Creates all tables for SpacePlus:
- admin_users, users, sessions (accounts)
- jobs, news, cases, media, homepage_sections (CMS content)
- social_sources, social_posts (social media ingestion)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _key_and_timestamps(pk: str, *, updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            pk,
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]
    if updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("now()"),
                nullable=False,
            )
        )
    return columns


def upgrade() -> None:
    """Apply migration: Initial schema."""
    admin_role = postgresql.ENUM("admin", "hr", "editor", name="admin_role", create_type=False)
    admin_role.create(op.get_bind(), checkfirst=True)

    social_platform = postgresql.ENUM(
        "instagram", "wechat", "weibo", "twitter", name="social_platform", create_type=False
    )
    social_platform.create(op.get_bind(), checkfirst=True)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------
    op.create_table(
        "admin_users",
        *_key_and_timestamps("admin_user_id"),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", admin_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("admin_user_id", name=op.f("pk_admin_users")),
        sa.UniqueConstraint("email", name=op.f("uq_admin_users_email")),
    )

    op.create_table(
        "users",
        *_key_and_timestamps("user_id"),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )

    op.create_table(
        "sessions",
        *_key_and_timestamps("session_id"),
        # SHA-256 of the cookie token
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("admin_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "last_activity_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revocation_reason", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(
            ["admin_user_id"],
            ["admin_users.admin_user_id"],
            name=op.f("fk_sessions_admin_user_id_admin_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("session_id", name=op.f("pk_sessions")),
        sa.UniqueConstraint("token_hash", name=op.f("uq_sessions_token_hash")),
    )
    op.create_index("ix_sessions_admin_user_id", "sessions", ["admin_user_id"], unique=False)
    op.create_index("ix_sessions_expires_at", "sessions", ["expires_at"], unique=False)

    # -------------------------------------------------------------------------
    # CMS content
    # -------------------------------------------------------------------------
    op.create_table(
        "jobs",
        *_key_and_timestamps("job_id"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("employment_type", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("requirements", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("job_id", name=op.f("pk_jobs")),
    )
    op.create_index("ix_jobs_is_active", "jobs", ["is_active"], unique=False)

    op.create_table(
        "news",
        *_key_and_timestamps("news_id"),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("author_name", sa.String(255), nullable=True),
        sa.Column("author_avatar", sa.String(1000), nullable=True),
        sa.Column("image", sa.String(1000), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String(255)), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("read_time", sa.Integer(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        # Provenance of articles generated from social posts
        sa.Column("source", sa.String(50), nullable=True),
        sa.Column("source_url", sa.String(1000), nullable=True),
        sa.Column("source_id", sa.String(500), nullable=True),
        sa.Column("auto_generated", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("news_id", name=op.f("pk_news")),
        sa.UniqueConstraint("slug", name=op.f("uq_news_slug")),
    )
    op.create_index("ix_news_published_at", "news", ["published_at"], unique=False)
    op.create_index("ix_news_category", "news", ["category"], unique=False)

    op.create_table(
        "cases",
        *_key_and_timestamps("case_id"),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("client", sa.String(255), nullable=True),
        sa.Column("industry", sa.String(100), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image", sa.String(1000), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String(100)), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("case_id", name=op.f("pk_cases")),
        sa.UniqueConstraint("slug", name=op.f("uq_cases_slug")),
    )

    op.create_table(
        "media",
        *_key_and_timestamps("media_id", updated=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("alt", sa.String(500), nullable=True),
        sa.PrimaryKeyConstraint("media_id", name=op.f("pk_media")),
    )

    op.create_table(
        "homepage_sections",
        *_key_and_timestamps("section_id"),
        sa.Column("section_key", sa.String(100), nullable=False),
        sa.Column("locale", sa.String(10), nullable=False),
        sa.Column("content", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("section_id", name=op.f("pk_homepage_sections")),
        sa.UniqueConstraint(
            "section_key", "locale", name=op.f("uq_homepage_sections_section_key")
        ),
    )

    # -------------------------------------------------------------------------
    # Social media ingestion
    # -------------------------------------------------------------------------
    op.create_table(
        "social_sources",
        *_key_and_timestamps("source_id"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("platform", social_platform, nullable=False),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("webhook_url", sa.String(1000), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sync_interval", sa.Integer(), nullable=False),
        sa.Column("config", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("last_sync", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("source_id", name=op.f("pk_social_sources")),
    )
    op.create_index("ix_social_sources_is_active", "social_sources", ["is_active"], unique=False)

    op.create_table(
        "social_posts",
        *_key_and_timestamps("post_id"),
        sa.Column("source_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("platform", social_platform, nullable=False),
        sa.Column("platform_id", sa.String(500), nullable=False),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("media_urls", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("author_name", sa.String(255), nullable=True),
        sa.Column("author_avatar", sa.String(1000), nullable=True),
        sa.Column(
            "published_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("likes", sa.Integer(), nullable=False),
        sa.Column("comments", sa.Integer(), nullable=False),
        sa.Column("shares", sa.Integer(), nullable=False),
        sa.Column("hashtags", postgresql.ARRAY(sa.String(255)), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("is_processed", sa.Boolean(), nullable=False),
        sa.Column("news_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["source_id"],
            ["social_sources.source_id"],
            name=op.f("fk_social_posts_source_id_social_sources"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["news_id"],
            ["news.news_id"],
            name=op.f("fk_social_posts_news_id_news"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("post_id", name=op.f("pk_social_posts")),
        sa.UniqueConstraint(
            "platform", "platform_id", name=op.f("uq_social_posts_platform")
        ),
    )
    op.create_index("ix_social_posts_source_id", "social_posts", ["source_id"], unique=False)
    op.create_index(
        "ix_social_posts_is_processed", "social_posts", ["is_processed"], unique=False
    )
    op.create_index(
        "ix_social_posts_published_at", "social_posts", ["published_at"], unique=False
    )


def downgrade() -> None:
    """Revert migration: Initial schema."""
    # Reverse order of foreign key dependencies
    op.drop_table("social_posts")
    op.drop_table("social_sources")
    op.drop_table("homepage_sections")
    op.drop_table("media")
    op.drop_table("cases")
    op.drop_table("news")
    op.drop_table("jobs")
    op.drop_table("sessions")
    op.drop_table("users")
    op.drop_table("admin_users")

    op.execute("DROP TYPE IF EXISTS social_platform")
    op.execute("DROP TYPE IF EXISTS admin_role")
