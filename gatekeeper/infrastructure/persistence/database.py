"""Async engine and session factories.

Two session factories share one engine:

    async_session     read/write units of work (default isolation)
    snapshot_session  effective-permission resolution; REPEATABLE READ on
                      PostgreSQL so one resolution reads a single snapshot

SQLite (aiosqlite) is accepted for local runs and tests. A ``:memory:`` URL
is pinned to one connection, otherwise every session would get its own
empty database.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from gatekeeper.infrastructure.persistence import models  # noqa: F401
from gatekeeper.infrastructure.persistence.base import BaseModel


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url:
            options["poolclass"] = StaticPool
        return options

    options = {"pool_pre_ping": True, "pool_size": pool_size, "max_overflow": max_overflow}
    if "postgresql" in database_url:
        options["connect_args"] = {
            "server_settings": {"jit": "off"},
            "command_timeout": 60,
            "timeout": 30,
        }
    return options


class Database:
    """Owns the engine; repositories only ever see sessions.

    Args:
        database_url: Async SQLAlchemy URL.
        echo: Log every SQL statement.
        pool_size: Pooled connections (server databases only).
        max_overflow: Connections allowed above ``pool_size``.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 0,
    ) -> None:
        self.engine: AsyncEngine = create_async_engine(
            database_url, echo=echo, **_engine_options(database_url, pool_size, max_overflow)
        )
        self.async_session = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

        snapshot_engine = self.engine
        if self.engine.dialect.name == "postgresql":
            snapshot_engine = self.engine.execution_options(isolation_level="REPEATABLE READ")
        self.snapshot_session = async_sessionmaker(
            snapshot_engine, class_=AsyncSession, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Standalone session: commit when the block exits cleanly, else roll back."""
        async with self.async_session() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise
            await session.commit()

    async def create_all(self) -> None:
        """Create every table from the models. Local runs and tests only; see alembic."""
        async with self.engine.begin() as connection:
            await connection.run_sync(BaseModel.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as connection:
            await connection.run_sync(BaseModel.metadata.drop_all)

    async def close(self) -> None:
        await self.engine.dispose()

    async def check_connection(self) -> bool:
        """``SELECT 1`` round trip, for the health endpoint."""
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError):
            return False
        return True
