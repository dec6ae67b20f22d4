"""
Database engine, session factory and scoped transactions.

A single ``Database`` instance is created at process start and shared by
every request. It owns the async engine, tracks whether the underlying
connection is usable, and hands out one transaction per logical operation.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


class DatabaseUnavailableError(Exception):
    """Raised when an operation is attempted while the connection is down."""
    pass


def build_connect_args(url: str, config: Settings) -> dict[str, Any]:
    """
    Driver specific connection arguments carrying the connect and
    statement timeouts.

    Args:
        url: SQLAlchemy database URL
        config: Application settings

    Returns:
        Keyword arguments passed to the DBAPI ``connect`` call
    """
    driver = make_url(url).get_driver_name()
    if driver == "asyncpg":
        return {
            "timeout": config.database_connect_timeout,
            "command_timeout": config.database_statement_timeout,
            "server_settings": {
                "statement_timeout": str(int(config.database_statement_timeout * 1000)),
            },
        }
    if driver == "aiosqlite":
        return {"timeout": config.database_connect_timeout}
    return {}


class Database:
    """
    Process-wide storage handle.

    Operations call ``transaction()``; it fails fast with
    ``DatabaseUnavailableError`` while the liveness flag is down, which
    happens before ``connect()`` succeeds and after any disconnect error
    reported by the driver.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        config: Optional[Settings] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        self.config = config or default_settings
        self.url = url or self.config.database_url

        if engine is None:
            engine_kwargs: dict[str, Any] = {
                "echo": self.config.database_echo,
                "connect_args": build_connect_args(self.url, self.config),
            }
            if make_url(self.url).get_backend_name() != "sqlite":
                engine_kwargs.update(
                    pool_size=self.config.database_pool_size,
                    max_overflow=0,
                    pool_timeout=self.config.database_connect_timeout,
                )
            engine = create_async_engine(self.url, **engine_kwargs)

        self.engine = engine
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        self._alive = False
        self._register_listeners()

    @property
    def is_alive(self) -> bool:
        """Whether the shared connection is believed to be usable."""
        return self._alive

    def mark_down(self, reason: str = "unknown") -> None:
        """Flip the liveness flag off so later operations fail fast."""
        if self._alive:
            logger.error(f"Database connection marked down: {reason}")
        self._alive = False

    def _register_listeners(self) -> None:
        @event.listens_for(self.engine.sync_engine, "handle_error")
        def _on_error(context):
            if context.is_disconnect:
                self.mark_down(f"{type(context.original_exception).__name__}")

        @event.listens_for(self.engine.sync_engine.pool, "invalidate")
        def _on_invalidate(dbapi_connection, connection_record, exception):
            if exception is not None:
                self.mark_down(f"connection invalidated: {type(exception).__name__}")

    async def connect(self) -> bool:
        """
        Establish the connection and raise the liveness flag.

        Failures are logged, not raised, so the process can start and report
        "service unavailable" until the storage comes back.

        Returns:
            True if the database answered
        """
        return await self.ping()

    async def ping(self) -> bool:
        """Run ``SELECT 1`` and update the liveness flag from the outcome."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            logger.error(f"Database ping failed: {type(e).__name__}: {e}")
            self._alive = False
            return False

        if not self._alive:
            logger.info("Database connection established")
        self._alive = True
        return True

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Scoped ``BEGIN ... COMMIT`` around one logical operation.

        Commits when the block exits normally and rolls back on any
        exception, which is then re-raised.

        Raises:
            DatabaseUnavailableError: If the liveness flag is down
        """
        if not self._alive:
            raise DatabaseUnavailableError("Database connection is not available")

        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def create_all(self) -> None:
        """Create every table known to the model metadata."""
        # Import models so they register on Base.metadata
        import database.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database engine and connections."""
        self._alive = False
        await self.engine.dispose()
