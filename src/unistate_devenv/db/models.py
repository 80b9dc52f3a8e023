"""
unistate_devenv.db.models

Probe table used to check that data survives container restarts.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from unistate_devenv.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProbeRecord(Base):
    __tablename__ = "devenv_probe"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
