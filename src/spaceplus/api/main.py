"""SpacePlus API service entry point.

This module provides the application instance for ASGI servers (uvicorn)
and a run() function for direct execution.
"""

import logging

from spaceplus.api import create_app
from spaceplus.api.middleware import RequestIDLogFilter
from spaceplus.core.log import configure_logging
from spaceplus.core.settings import get_settings_safe

logger = logging.getLogger(__name__)

# What uvicorn references: spaceplus.api.main:app
app = create_app(get_settings_safe())


def run() -> None:
    """Run the API server using uvicorn.

    This function is called by the spaceplus-api console script
    defined in pyproject.toml.
    """
    import uvicorn

    settings = app.state.settings
    if settings is not None:
        host = settings.api_host
        port = settings.api_port
        log_level = settings.log_level
        name = settings.app_name
    else:
        logger.warning("Could not load settings, using defaults")
        host = "127.0.0.1"
        port = 8000
        log_level = "INFO"
        name = "SpacePlus"

    configure_logging(log_level, log_filter=RequestIDLogFilter())

    logger.info("Starting %s API on %s:%d", name, host, port)

    uvicorn.run(
        "spaceplus.api.main:app",
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
