"""Process-wide logging setup for the API and the worker."""

from __future__ import annotations

import logging

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
REQUEST_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def configure_logging(level: str = "INFO", *, log_filter: logging.Filter | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Level name, as validated by Settings.log_level.
        log_filter: Filter added to every root handler. When given, records
            are expected to carry ``request_id`` (see RequestIDLogFilter).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=REQUEST_FORMAT if log_filter is not None else PLAIN_FORMAT,
    )
    if log_filter is not None:
        for handler in logging.getLogger().handlers:
            handler.addFilter(log_filter)

    if level.upper() != "DEBUG":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
