"""
VideoTube Backend — Connection Manager
=======================================

What:  Owns the async SQLAlchemy engine and session factory, verifies the
       store is reachable at startup, and provides per-request sessions.
Why:   One explicit object constructed at startup and injected through
       `app.state.db` replaces module-level connection singletons.
How:   `ConnectionManager.connect()` runs a trivial liveness query once.
       On success it logs and returns; on failure it logs and raises
       DatabaseConnectionError without retrying. The caller (the app
       lifespan) decides to abort.
Who:   Created by `create_app()`; used by the `/` liveness route and by the
       `get_db_session` dependency.

Connection Pooling:
    Pool supervision (reconnects, pre-ping, recycling) belongs to
    SQLAlchemy/asyncpg. This module only sizes the pool from settings.
    SQLite URLs (tests, local dev) use a StaticPool so an in-memory
    database survives across sessions.
"""

import logging
import ssl
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from videotube.config import Settings
from videotube.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

# Portable across PostgreSQL and SQLite; equivalent to `select now()`
LIVENESS_QUERY = "SELECT CURRENT_TIMESTAMP AS now"


class Base(DeclarativeBase):
    """Base class for all ORM models; Alembic reads `Base.metadata`."""


def build_ssl_context(ssl_mode: str) -> Optional[ssl.SSLContext]:
    """Translate the configured TLS policy into an asyncpg `ssl` argument."""
    if ssl_mode == "disable":
        return None
    context = ssl.create_default_context()
    if ssl_mode == "require":
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class ConnectionManager:
    """
    Process-wide handle on the relational store.

    Constructed once at startup. Handlers never build their own engine; they
    receive sessions through `get_db_session`.
    """

    def __init__(
        self,
        database_url: str,
        ssl_mode: str = "disable",
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.database_url = database_url
        self.ssl_mode = ssl_mode
        self.ready = False

        engine_kwargs: Dict[str, Any] = {"echo": echo}
        connect_args: Dict[str, Any] = {}

        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )
            ssl_context = build_ssl_context(ssl_mode)
            if ssl_context is not None:
                connect_args["ssl"] = ssl_context

        self.engine: AsyncEngine = create_async_engine(
            database_url, connect_args=connect_args, **engine_kwargs
        )
        if database_url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        # expire_on_commit=False: objects stay readable after commit without
        # another round-trip (lazy loads are not available under asyncio)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionManager":
        return cls(
            settings.database_url,
            ssl_mode=settings.db_ssl_mode,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    async def ping(self) -> List[Dict[str, Any]]:
        """
        Run the liveness query and return its rows as dicts.

        Raises:
            DatabaseConnectionError: the store is unreachable or the query failed.
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(LIVENESS_QUERY))
                return [dict(row._mapping) for row in result]
        except (SQLAlchemyError, OSError) as exc:
            raise DatabaseConnectionError(context={"reason": str(exc)}) from exc

    async def connect(self) -> List[Dict[str, Any]]:
        """
        One-shot startup check. Reports success or failure exactly once.

        No retry and no reconnection loop: the caller decides whether a
        failure aborts startup.
        """
        try:
            rows = await self.ping()
        except DatabaseConnectionError as exc:
            self.ready = False
            logger.error("Database connection failed: %s", exc.context.get("reason", exc.message))
            raise
        self.ready = True
        logger.info("Database is connected")
        return rows

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_schema(self) -> None:
        """Create all tables from the ORM metadata. Migrations own production schemas."""
        # Registers the mappers with Base.metadata
        import videotube.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        self.ready = False
        await self.engine.dispose()


# ── FastAPI Dependencies ──────────────────────────────────────────────────

def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.db


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide one session per request.

    Services commit their own writes. Anything left uncommitted when the
    request ends (a handler failed half-way) is rolled back when the
    session closes.
    """
    manager: ConnectionManager = request.app.state.db
    async with manager.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
