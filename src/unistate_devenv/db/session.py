"""
unistate_devenv.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the async engine from the credential triple in settings.
- Create the async sessionmaker with safe defaults.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from unistate_devenv.settings import Settings


def create_engine(settings: Settings, *, connect_timeout: float = 5.0) -> AsyncEngine:
    # No connection is opened here; the first query does that.
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        connect_args={"timeout": connect_timeout},
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


# --- Module Notes -----------------------------------------------------------
# `connect_args["timeout"]` is asyncpg's connect timeout in seconds.
