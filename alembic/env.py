"""Alembic migration environment (async engine).

The database URL comes from ``gatekeeper.core.config.settings``; the value in
alembic.ini is ignored. After an online ``upgrade`` the authorization
seeders run in their own session, so system roles and base permissions exist
on every fresh database. Pass ``-x seed=false`` to skip them or
``-x seed=true`` to run them after any other online command.
"""

import asyncio
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, async_engine_from_config, async_sessionmaker

from alembic import context
from gatekeeper.core.config import settings
from gatekeeper.infrastructure.persistence import models  # noqa: F401
from gatekeeper.infrastructure.persistence.base import BaseModel

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

config.set_main_option("sqlalchemy.url", settings.database_url)
target_metadata = BaseModel.metadata

_TRUTHY = {"1", "true", "yes", "y"}


def _seed_flag() -> str:
    return context.get_x_argument(as_dictionary=True).get("seed", "").strip().lower()


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def _run_sync(connection: Connection) -> None:
    # SQLite cannot ALTER most constraints in place.
    _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")


async def _seed(engine: AsyncEngine) -> None:
    seeds_dir = str(Path(__file__).parent)
    if seeds_dir not in sys.path:
        sys.path.insert(0, seeds_dir)
    from seeds import run_all_seeders

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        await run_all_seeders(session)
        await session.commit()


async def run_migrations_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)

        command = getattr(getattr(config, "cmd_opts", None), "cmd", None)
        is_upgrade = command == "upgrade" or "upgrade" in sys.argv
        flag = _seed_flag()
        if (is_upgrade and flag not in {"0", "false", "no", "n"}) or flag in _TRUTHY:
            await _seed(engine)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
