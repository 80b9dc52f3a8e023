"""
unistate_devenv.compose

Compose document package.

Responsibilities:
- Typed records for services, volumes and the document (`models`).
- Build the unistate dev environment from settings (`builder`).
- YAML rendering/parsing (`io`) and client/server consistency checks (`consistency`).
"""

from unistate_devenv.compose.builder import build_document
from unistate_devenv.compose.consistency import find_credential_drift
from unistate_devenv.compose.io import dump_document, load_document, read_document, write_document
from unistate_devenv.compose.models import ComposeDocument, ServiceDefinition

__all__ = [
    "ComposeDocument",
    "ServiceDefinition",
    "build_document",
    "dump_document",
    "find_credential_drift",
    "load_document",
    "read_document",
    "write_document",
]
