"""
unistate_devenv.db.repositories

Repositories over the probe table.
"""

# Package marker.
