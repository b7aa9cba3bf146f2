"""Tests for database URL handling and engine lifecycle."""

import pytest

from spaceplus.core.config import DatabaseSettings
from spaceplus.db import build_engine, close_engine, to_driver_url


class TestDriverUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgresql://u:p@db:5432/spaceplus", "postgresql+psycopg://u:p@db:5432/spaceplus"),
            ("postgres://u:p@db/spaceplus", "postgresql+psycopg://u:p@db/spaceplus"),
            ("postgresql+psycopg://u:p@db/spaceplus", "postgresql+psycopg://u:p@db/spaceplus"),
        ],
    )
    def test_to_driver_url(self, url, expected):
        assert to_driver_url(url) == expected


class TestEngine:
    async def test_build_engine_uses_psycopg(self):
        engine = build_engine(
            DatabaseSettings(url="postgresql://u:p@localhost:5432/spaceplus", pool_size=3)
        )
        try:
            assert engine.url.drivername == "postgresql+psycopg"
            assert engine.url.database == "spaceplus"
            assert engine.pool.size() == 3
        finally:
            await engine.dispose()

    async def test_close_engine_without_engine(self):
        await close_engine()
