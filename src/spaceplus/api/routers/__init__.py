"""SpacePlus API routers.

All routers are mounted under /api:
- /health - service health
- /auth/* - admin login, logout and current user
- /news/* - public news articles
- /cases/* - public case studies
- /admin/social-scheduler - scheduler control
- /admin/social-sources/* - social source management
- /admin/social-posts/* - scraped post review
"""

from spaceplus.api.routers.auth import router as auth_router
from spaceplus.api.routers.cases import router as cases_router
from spaceplus.api.routers.health import router as health_router
from spaceplus.api.routers.news import router as news_router
from spaceplus.api.routers.social_posts import router as social_posts_router
from spaceplus.api.routers.social_scheduler import router as social_scheduler_router
from spaceplus.api.routers.social_sources import router as social_sources_router

__all__ = [
    "auth_router",
    "cases_router",
    "health_router",
    "news_router",
    "social_posts_router",
    "social_scheduler_router",
    "social_sources_router",
]
