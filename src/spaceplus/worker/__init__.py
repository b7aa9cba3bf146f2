"""SpacePlus worker service.

Runs the social media scraping scheduler as its own process.

Usage:
    python -m spaceplus.worker
"""

from spaceplus.worker.main import Worker, WorkerConfig, run

__all__ = ["Worker", "WorkerConfig", "run"]
