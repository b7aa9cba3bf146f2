"""SpacePlus core module.

Shared components used across the API and the worker:
- Configuration management
- Settings accessor
"""

from spaceplus.core.config import (
    AuthSettings,
    ConfigValidationError,
    DatabaseSettings,
    Environment,
    SchedulerSettings,
    ScraperSettings,
    Settings,
)
from spaceplus.core.settings import (
    clear_settings_cache,
    get_settings,
    get_settings_safe,
)

__all__ = [
    "AuthSettings",
    "ConfigValidationError",
    "DatabaseSettings",
    "Environment",
    "SchedulerSettings",
    "ScraperSettings",
    "Settings",
    "clear_settings_cache",
    "get_settings",
    "get_settings_safe",
]
