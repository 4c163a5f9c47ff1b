"""
Kafiza Backend — Connection Manager Tests
===========================================

What we test:
    ✅ Concurrent first callers trigger exactly one connect
    ✅ A failed connect leaves the cache empty and a later call reconnects
    ✅ Transient probe failures are retried
    ✅ ping() reports False instead of raising
    ✅ Missing settings raise ConfigurationError
    ✅ reset() forces a fresh engine
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from kafiza.config import Settings
from kafiza.database import ConnectionManager
from kafiza.exceptions import ConfigurationError, StoreConnectionError
from conftest import make_manager


class CountingEngineFactory:
    """create_async_engine wrapper that records how often it was called."""

    def __init__(self):
        self.calls = 0

    def __call__(self, url, **kwargs):
        self.calls += 1
        return create_async_engine(url, **kwargs)


class TestConnect:

    @pytest.mark.asyncio
    async def test_concurrent_first_use_connects_once(self, tmp_path):
        factory = CountingEngineFactory()
        manager = make_manager(tmp_path / "kafiza.db", engine_factory=factory)

        engines = await asyncio.gather(*(manager.get_engine() for _ in range(10)))

        assert factory.calls == 1
        assert all(engine is engines[0] for engine in engines)
        assert manager.is_connected
        await manager.dispose()

    @pytest.mark.asyncio
    async def test_failed_connect_is_not_cached(self, tmp_path):
        """The parent directory does not exist, so SQLite cannot open the file."""
        factory = CountingEngineFactory()
        missing_dir = tmp_path / "not-yet"
        manager = make_manager(missing_dir / "kafiza.db", engine_factory=factory)

        with pytest.raises(StoreConnectionError):
            await manager.get_engine()
        assert not manager.is_connected

        missing_dir.mkdir()
        await manager.get_engine()

        assert manager.is_connected
        assert factory.calls == 2
        await manager.dispose()

    @pytest.mark.asyncio
    async def test_transient_probe_failure_is_retried(self, tmp_path):
        manager = make_manager(tmp_path / "kafiza.db", connect_attempts=3)
        probe = AsyncMock(side_effect=[OSError("connection refused"), None])

        with patch("kafiza.database._probe", probe):
            await manager.get_engine()

        assert probe.await_count == 2
        assert manager.is_connected
        await manager.dispose()

    @pytest.mark.asyncio
    async def test_gives_up_after_all_attempts(self, tmp_path):
        manager = make_manager(tmp_path / "kafiza.db", connect_attempts=2)
        probe = AsyncMock(side_effect=OSError("connection refused"))

        with patch("kafiza.database._probe", probe):
            with pytest.raises(StoreConnectionError) as exc_info:
                await manager.get_engine()

        assert probe.await_count == 2
        assert exc_info.value.context["attempts"] == 2
        assert not manager.is_connected


class TestHandles:

    @pytest.mark.asyncio
    async def test_get_collection_returns_mapped_model(self, connections):
        collection = await connections.get_collection("farmers")

        assert collection.name == "farmers"
        assert collection.model.__tablename__ == "farmers"

    @pytest.mark.asyncio
    async def test_unknown_collection_is_key_error(self, connections):
        with pytest.raises(KeyError):
            await connections.get_collection("baristas")

    @pytest.mark.asyncio
    async def test_ping(self, connections, tmp_path):
        assert await connections.ping() is True

        unreachable = make_manager(tmp_path / "missing" / "kafiza.db")
        assert await unreachable.ping() is False

    @pytest.mark.asyncio
    async def test_reset_forces_new_engine(self, tmp_path):
        factory = CountingEngineFactory()
        manager = make_manager(tmp_path / "kafiza.db", engine_factory=factory)

        first = await manager.get_engine()
        await manager.reset()
        assert not manager.is_connected
        second = await manager.get_engine()

        assert first is not second
        assert factory.calls == 2
        await manager.dispose()


class TestConfiguration:

    def test_missing_url_or_name(self):
        with pytest.raises(ConfigurationError):
            ConnectionManager(url="", database_name="kafiza").resolved_url()
        with pytest.raises(ConfigurationError):
            ConnectionManager(url="postgresql+asyncpg://localhost", database_name="").resolved_url()

    def test_database_name_replaces_url_database(self):
        manager = ConnectionManager(
            url="postgresql+asyncpg://kafiza:secret@db:5432/ignored",
            database_name="kafiza",
        )
        url = manager.resolved_url()

        assert url.database == "kafiza"
        assert url.host == "db"

    def test_unparseable_url(self):
        with pytest.raises(ConfigurationError):
            ConnectionManager(url="not a url", database_name="kafiza").resolved_url()

    @pytest.mark.asyncio
    async def test_get_engine_without_settings(self):
        manager = ConnectionManager(url="", database_name="")
        with pytest.raises(ConfigurationError):
            await manager.get_engine()

    def test_validate_required_lists_every_missing_setting(self):
        config = Settings(database_url="", database_name="")
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_required()

        assert "DATABASE_URL" in exc_info.value.message
        assert "DATABASE_NAME" in exc_info.value.message
