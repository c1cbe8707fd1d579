"""Alembic environment configuration for Reviewpool.

Migrations run through SQLAlchemy's async engine (asyncpg driver). The
database URL comes from ReviewpoolConfig unless one is passed on the
command line with ``alembic -x url=postgresql+asyncpg://... upgrade head``.

Supports both online (connected to database) and offline (SQL script
generation) migration modes.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from reviewpool.config import load_config
from reviewpool.database.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

url_override = context.get_x_argument(as_dictionary=True).get("url")
config.set_main_option("sqlalchemy.url", url_override or load_config().database.url)

# Importing the models package registers every table on this metadata
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting to the database."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Connect with a throwaway async engine and apply pending migrations."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
