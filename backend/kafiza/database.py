"""
Kafiza Backend — Store Connection Management
==============================================

What:  Cached async SQLAlchemy engine, named collection handles, and the
       FastAPI dependency that hands the manager to route handlers.
How:   The first caller opens the engine and probes it with SELECT 1; every
       later caller reuses it. A collection is a mapped table bound to the
       session factory of the cached engine.
Who:   Used by the resource repositories, the health route and the lifespan.
When:  The engine is created lazily on first use and lives until shutdown
       or until a detected disconnect clears it.

Connection lifecycle:
    EMPTY ──get_engine()──▶ CONNECTING ──probe ok──▶ READY
      ▲                          │                      │
      └──────probe failed────────┘        reset()/dispose()
      ▲                                                 │
      └─────────────────────────────────────────────────┘

    Concurrent first callers queue on one asyncio.Lock: exactly one of them
    creates and probes the engine, the others wake up to the cached result.
    A failed probe disposes the half-built engine and leaves the cache empty.

Connection Pooling Strategy:
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600 for
    server databases. SQLite uses the pool SQLAlchemy picks for it.
"""

import asyncio
import functools
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from kafiza.config import Settings, settings
from kafiza.exceptions import ConfigurationError, StoreConnectionError

logger = logging.getLogger(__name__)

# Nested documents keep non-ASCII text (São Paulo) readable in the store,
# which also keeps substring search over JSON columns working.
_json_dumps = functools.partial(json.dumps, ensure_ascii=False)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers its table here; `__tablename__` doubles as the
    collection name handed to `ConnectionManager.get_collection()`.
    """
    pass


@dataclass(frozen=True)
class Collection:
    """A named collection: the mapped model plus sessions on the cached engine."""

    name: str
    model: Type[Base]
    session_factory: async_sessionmaker
    # SQLAlchemy dialect name of the engine ("postgresql", "sqlite")
    dialect: str

    def session(self) -> AsyncSession:
        return self.session_factory()


async def _probe(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


class ConnectionManager:
    """
    Owns the process-wide engine and hands out collection handles.

    Args:
        url: Async SQLAlchemy URL (driver included, database part optional)
        database_name: Logical database name, replaces the URL's database
        engine_factory: Callable building the engine; tests pass a counting double
        connect_attempts: Tenacity attempts for the first connect
        connect_timeout: Seconds allowed for each reachability probe
    """

    def __init__(
        self,
        url: str,
        database_name: str,
        *,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        connect_timeout: float = 10.0,
        connect_attempts: int = 3,
        connect_min_wait: int = 1,
        connect_max_wait: int = 5,
        echo: bool = False,
        engine_factory: Callable[..., AsyncEngine] = create_async_engine,
    ):
        self.url = url
        self.database_name = database_name
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_pre_ping = pool_pre_ping
        self.connect_timeout = connect_timeout
        self.connect_attempts = connect_attempts
        self.connect_min_wait = connect_min_wait
        self.connect_max_wait = connect_max_wait
        self.echo = echo
        self._engine_factory = engine_factory

        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, config: Settings) -> "ConnectionManager":
        return cls(
            url=config.database_url,
            database_name=config.database_name,
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            connect_timeout=config.db_connect_timeout,
            connect_attempts=config.db_connect_attempts,
            connect_min_wait=config.db_connect_min_wait,
            connect_max_wait=config.db_connect_max_wait,
            echo=config.log_level == "DEBUG",
        )

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def resolved_url(self) -> URL:
        """
        Builds the final URL from the connection string and database name.

        Raises:
            ConfigurationError: Either value is missing or the URL does not parse
        """
        if not self.url or not self.database_name:
            raise ConfigurationError(
                "Both DATABASE_URL and DATABASE_NAME must be configured",
                context={"has_url": bool(self.url), "has_name": bool(self.database_name)},
            )
        try:
            return make_url(self.url).set(database=self.database_name)
        except ArgumentError as e:
            raise ConfigurationError(
                "DATABASE_URL is not a valid SQLAlchemy URL",
                context={"error_type": type(e).__name__},
            ) from e

    def _engine_options(self, url: URL) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.echo, "json_serializer": _json_dumps}
        if url.get_backend_name() != "sqlite":
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_pre_ping=self.pool_pre_ping,
                pool_recycle=3600,
            )
        return options

    async def get_engine(self) -> AsyncEngine:
        """
        Returns the cached engine, connecting on first use.

        Raises:
            ConfigurationError: Connection settings are missing
            StoreConnectionError: The store did not answer after all attempts
        """
        if self._engine is not None:
            return self._engine

        async with self._lock:
            # A caller that waited on the lock finds the engine already set
            if self._engine is None:
                self._engine = await self._connect()
                self._session_factory = async_sessionmaker(
                    self._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
            return self._engine

    async def _connect(self) -> AsyncEngine:
        url = self.resolved_url()
        engine = self._engine_factory(url, **self._engine_options(url))
        logger.info(
            "Connecting to %s database '%s'",
            url.get_backend_name(),
            url.database,
        )

        retrying = AsyncRetrying(
            retry=retry_if_exception_type((SQLAlchemyError, OSError, asyncio.TimeoutError)),
            stop=stop_after_attempt(self.connect_attempts),
            wait=wait_exponential_jitter(
                initial=self.connect_min_wait,
                max=self.connect_max_wait,
                jitter=1,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await asyncio.wait_for(_probe(engine), timeout=self.connect_timeout)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            await engine.dispose()
            logger.error(
                "Database unreachable after %d attempt(s): %s",
                self.connect_attempts,
                str(e),
            )
            raise StoreConnectionError(
                context={"attempts": self.connect_attempts, "error_type": type(e).__name__},
            ) from e

        logger.info("Database connection established")
        return engine

    async def get_collection(self, name: str) -> Collection:
        """
        Returns the collection handle for a mapped table name.

        Raises:
            KeyError: No model is mapped to `name`
            StoreConnectionError: The store is unreachable
        """
        model = _model_for(name)
        engine = await self.get_engine()
        return Collection(
            name=name,
            model=model,
            session_factory=self._session_factory,
            dialect=engine.dialect.name,
        )

    async def ping(self) -> bool:
        """Reports store reachability. Never raises."""
        try:
            engine = await self.get_engine()
            await asyncio.wait_for(_probe(engine), timeout=self.connect_timeout)
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def _clear(self) -> bool:
        async with self._lock:
            engine, self._engine, self._session_factory = self._engine, None, None
        if engine is None:
            return False
        await engine.dispose()
        return True

    async def reset(self) -> None:
        """Drops the cached engine so the next call reconnects."""
        if await self._clear():
            logger.warning("Database connection cache cleared; next call reconnects")

    async def dispose(self) -> None:
        """Closes all pooled connections at shutdown."""
        if await self._clear():
            logger.info("Database engine disposed")


def _model_for(name: str) -> Type[Base]:
    for mapper in Base.registry.mappers:
        if getattr(mapper.class_, "__tablename__", None) == name:
            return mapper.class_
    raise KeyError(f"No collection named '{name}' is mapped")


# Process-wide manager; the engine inside it is created on first use
connection_manager = ConnectionManager.from_settings(settings)


def get_connection_manager() -> ConnectionManager:
    """FastAPI dependency returning the process-wide connection manager."""
    return connection_manager
