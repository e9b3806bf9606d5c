"""
Alembic Migration Environment
==============================

Runs migrations through the same ConnectionManager the application uses, so
the configured DATABASE_URL and TLS policy (DB_SSL_MODE) apply to
`alembic upgrade` exactly as they do at runtime.
"""

import asyncio
from logging.config import fileConfig

from alembic import context

from videotube.config import settings
from videotube.database import Base, ConnectionManager

# Registers every model on Base.metadata for --autogenerate
import videotube.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# The URL always comes from settings, never from alembic.ini
config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    manager = ConnectionManager(
        settings.database_url,
        ssl_mode=settings.db_ssl_mode,
        pool_size=1,
        max_overflow=0,
    )
    try:
        async with manager.engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await manager.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
