"""SpacePlus services.

Business logic shared by the API and the worker:
- session: admin authentication and sessions
- social_scraper: platform scraping and post-to-news conversion
- social_scheduler: periodic scraping of social sources
"""

from spaceplus.services.session import (
    DeviceInfo,
    InvalidCredentialsError,
    SessionError,
    SessionService,
    SessionToken,
    hash_password,
    verify_password,
)
from spaceplus.services.social_scheduler import (
    SchedulerStatus,
    ScrapeOutcome,
    SocialScheduler,
    schedule_interval,
)
from spaceplus.services.social_scraper import (
    ScrapingResult,
    SocialPostData,
    SocialScraper,
)

__all__ = [
    "DeviceInfo",
    "InvalidCredentialsError",
    "SchedulerStatus",
    "ScrapeOutcome",
    "ScrapingResult",
    "SessionError",
    "SessionService",
    "SessionToken",
    "SocialPostData",
    "SocialScheduler",
    "SocialScraper",
    "hash_password",
    "schedule_interval",
    "verify_password",
]
