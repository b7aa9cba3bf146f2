"""SQLAlchemy ORM models for SpacePlus.

This package contains all database models organized by domain:
- base: Common metadata, column types and enums
- auth: Admin users and site users
- session: Admin sessions
- content: Jobs, news, cases, media and homepage sections
- social: Social sources and scraped posts
"""

from spaceplus.db.models.auth import AdminUser, User
from spaceplus.db.models.base import AdminRole, Base, SocialPlatform
from spaceplus.db.models.content import Case, Homepage, Job, Media, News
from spaceplus.db.models.session import Session
from spaceplus.db.models.social import SocialPost, SocialSource

__all__ = [
    "AdminRole",
    "AdminUser",
    "Base",
    "Case",
    "Homepage",
    "Job",
    "Media",
    "News",
    "Session",
    "SocialPlatform",
    "SocialPost",
    "SocialSource",
    "User",
]
