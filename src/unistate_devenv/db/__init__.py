"""
unistate_devenv.db

Database probes (SQLAlchemy async over asyncpg).

Responsibilities:
- Engine/session setup against the published database port.
- Session identity inspection and the persistence probe table.
"""

# Package marker.
