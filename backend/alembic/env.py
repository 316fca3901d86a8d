"""
Alembic Migration Environment
===============================

What:  Runs StaffDir migrations against the same DATABASE_URL and model
       metadata the application uses.
How:   Online runs open a throwaway async engine (no pool) from settings and
       hand a sync connection to Alembic through run_sync. Offline runs emit
       SQL for the configured dialect.

    alembic upgrade head
    alembic revision --autogenerate -m "add employee email"

Autogenerate compares column types too (VARCHAR lengths matter here, the
request schemas enforce the same limits). A revision with no detected
changes is not written. SQLite gets batch mode because it cannot ALTER most
column properties in place.
"""

import asyncio
import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from staffdir.config import settings
from staffdir.database import Base
from staffdir.models.credential import Credential  # noqa: F401
from staffdir.models.employee import Employee  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")


def _skip_empty_revision(migration_context, revision, directives) -> None:
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []
        logger.info("No schema changes detected; no revision written.")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        process_revision_directives=_skip_empty_revision,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=settings.is_sqlite,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection) -> None:
    _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
