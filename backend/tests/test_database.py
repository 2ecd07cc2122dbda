"""
Tests for the engine options per dialect.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import settings
from app.core.database import engine_options


class TestEngineOptions:

    def test_postgresql_uses_read_committed_and_pool(self):
        options = engine_options("postgresql+asyncpg://beleg:secret@db:5432/beleg")

        assert options["isolation_level"] == "READ COMMITTED"
        assert options["pool_size"] == settings.db_pool_size
        assert options["max_overflow"] == settings.db_max_overflow

    def test_sqlite_keeps_driver_defaults(self):
        options = engine_options("sqlite+aiosqlite:///./beleg.db")

        assert "isolation_level" not in options
        assert "pool_size" not in options
        assert "max_overflow" not in options

    async def test_sqlite_engine_connects(self):
        url = "sqlite+aiosqlite://"
        engine = create_async_engine(url, **engine_options(url))
        try:
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                assert result.scalar_one() == 1
        finally:
            await engine.dispose()
