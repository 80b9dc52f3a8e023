"""
unistate_devenv.db.base

SQLAlchemy declarative base for the probe table.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
