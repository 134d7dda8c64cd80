"""Tests for database URL handling and engine options."""
from __future__ import annotations

from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.utils.database import engine_options, resolve_database_url


class TestResolveDatabaseUrl:
    def test_postgres_gets_asyncpg(self):
        assert resolve_database_url("postgresql://u:p@db/geo") == "postgresql+asyncpg://u:p@db/geo"
        assert resolve_database_url("postgres://u:p@db/geo") == "postgresql+asyncpg://u:p@db/geo"

    def test_sqlite_gets_aiosqlite(self):
        assert resolve_database_url("sqlite:///./geo.db") == "sqlite+aiosqlite:///./geo.db"

    def test_async_urls_unchanged(self):
        url = "sqlite+aiosqlite:///./geo_tracker.db"
        assert resolve_database_url(url) == url


class TestEngineOptions:
    def test_server_database_is_pooled(self):
        settings = Settings(DATABASE_POOL_SIZE=5, DATABASE_MAX_OVERFLOW=2)
        options = engine_options("postgresql+asyncpg://db/geo", settings)
        assert options["pool_size"] == 5
        assert options["max_overflow"] == 2
        assert options["pool_pre_ping"] is True

    def test_file_sqlite_has_no_pool_sizing(self):
        options = engine_options("sqlite+aiosqlite:///./geo.db", Settings())
        assert "pool_size" not in options
        assert "poolclass" not in options

    def test_memory_sqlite_shares_one_connection(self):
        options = engine_options("sqlite+aiosqlite:///:memory:", Settings())
        assert options["poolclass"] is StaticPool
