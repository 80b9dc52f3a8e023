"""
unistate_devenv.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for the status API.
"""

# Package marker.
