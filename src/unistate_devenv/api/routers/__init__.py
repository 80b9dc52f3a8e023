"""
unistate_devenv.api.routers

HTTP routers for the status API.
"""
