"""
unistate_devenv.db.identity

Reports who a session is connected as, and who owns the database.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_SESSION_INFO_SQL = text(
    """
    SELECT current_database() AS database,
           current_user AS "user",
           pg_catalog.pg_get_userbyid(d.datdba) AS owner,
           current_setting('server_version') AS server_version
    FROM pg_catalog.pg_database AS d
    WHERE d.datname = current_database()
    """
)


@dataclass(frozen=True, slots=True)
class SessionInfo:
    database: str
    user: str
    owner: str
    server_version: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


async def describe_session(session: AsyncSession) -> SessionInfo:
    row = (await session.execute(_SESSION_INFO_SQL)).mappings().one()
    return SessionInfo(
        database=row["database"],
        user=row["user"],
        owner=row["owner"],
        server_version=row["server_version"],
    )
