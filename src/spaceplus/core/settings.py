"""Process-wide settings accessor.

    from spaceplus.core.settings import get_settings

    if get_settings().scheduler.enabled:
        ...

Settings are read from the environment once. A bad configuration stops the
process at startup instead of failing on first use; tests reset the cache
with clear_settings_cache().
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import ValidationError

from spaceplus.core.config import ConfigValidationError, Settings, validate_settings

logger = logging.getLogger(__name__)


def describe_validation_error(error: ValidationError) -> list[str]:
    """One ``field.path: message`` line per pydantic error."""
    return [
        "{}: {}".format(".".join(str(part) for part in item["loc"]) or "settings", item["msg"])
        for item in error.errors()
    ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load, validate and cache the settings.

    Raises:
        SystemExit: The environment does not describe a usable configuration.
    """
    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        problems = describe_validation_error(e)
        logger.critical(
            "Invalid configuration (%d problems):\n  %s", len(problems), "\n  ".join(problems)
        )
        raise SystemExit(1) from e

    try:
        validate_settings(settings)
    except ConfigValidationError as e:
        logger.critical("Invalid configuration for %s: %s", e.field or "settings", e.message)
        raise SystemExit(1) from e

    logger.info("Settings loaded: %s", settings.get_runtime_snapshot())
    return settings


def clear_settings_cache() -> None:
    get_settings.cache_clear()


def get_settings_safe() -> Settings | None:
    """Like get_settings(), but None instead of exiting."""
    try:
        return get_settings()
    except SystemExit:
        return None
