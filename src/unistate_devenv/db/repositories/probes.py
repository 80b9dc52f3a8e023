"""
unistate_devenv.db.repositories.probes

Repository for `ProbeRecord` rows.

Responsibilities:
- Append labelled rows before a restart.
- Read them back afterwards to confirm the volume kept them.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from unistate_devenv.db.models import ProbeRecord


class ProbeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, label: str) -> ProbeRecord:
        record = ProbeRecord(label=label)
        self._session.add(record)
        await self._session.flush()
        return record

    async def list_labels(self, *, limit: int = 100) -> list[str]:
        stmt = select(ProbeRecord.label).order_by(ProbeRecord.id).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def count(self) -> int:
        stmt = select(func.count()).select_from(ProbeRecord)
        return int((await self._session.execute(stmt)).scalar_one())


# --- Module Notes -----------------------------------------------------------
# Callers own the transaction: commit after `add` or the row is rolled back.
