"""
unistate_devenv.api

Status API for the dev environment (FastAPI).
"""

# Package marker.
