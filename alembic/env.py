"""
Alembic Migration Environment
===============================

What:  Configures Alembic for the async SQLAlchemy setup in deskmate.database.
Why:   Alembic has to reach the same database the app uses and see every
       table (accounts plus the three owned resource kinds) to autogenerate.
How:   Reads the database URL from deskmate.config (not from alembic.ini) and
       runs migrations through an async engine via connection.run_sync().
       SQLite targets get batch mode, since SQLite cannot ALTER most columns.
Who:   Called by `alembic` CLI commands (upgrade, downgrade, revision).
When:  Deployment, and local development against SQLite or PostgreSQL.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from deskmate.config import settings
from deskmate.database import Base

# Alembic only sees models registered on Base.metadata
from deskmate.models.account import Account  # noqa: F401
from deskmate.models.resource import JournalUnit, Note, Todo  # noqa: F401

# Values from alembic.ini
config = context.config

# Logging sections of alembic.ini, when run from the CLI
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Schema that --autogenerate diffs against
target_metadata = Base.metadata

# The URL comes from settings, never from alembic.ini
config.set_main_option("sqlalchemy.url", settings.database_url)

IS_SQLITE = settings.database_url.startswith("sqlite")


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    What:  Emits the migration SQL to stdout without connecting.
    When:  Reviewing the DDL before a deploy, or handing it to a DBA.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=IS_SQLITE,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """
    Apply pending migrations on an open connection, in one transaction.

    Called through run_sync(), so Alembic's synchronous API works unchanged.
    """
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=IS_SQLITE,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Run migrations in 'online' mode with an async engine.

    What:  Connects with the same async driver the app uses (asyncpg or
           aiosqlite) and applies pending migrations.
    How:   One short-lived engine; migrations run inside run_sync().
    """
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,  # one connection, closed when done
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Entry point for online migrations."""
    asyncio.run(run_async_migrations())


# `alembic upgrade --sql` selects offline mode
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
