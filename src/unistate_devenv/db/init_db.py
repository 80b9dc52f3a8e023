"""
unistate_devenv.db.init_db

Creates the probe table on demand.

The environment carries no schema of its own; this table exists only so
persistence checks have something to write.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from unistate_devenv.db.base import Base
from unistate_devenv.db import models  # noqa: F401  # registers ProbeRecord on Base.metadata


async def ensure_probe_table(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
