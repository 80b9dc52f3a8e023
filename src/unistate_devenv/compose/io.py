"""
unistate_devenv.compose.io

YAML rendering and parsing for compose documents (PyYAML).
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from unistate_devenv.compose.models import ComposeDocument
from unistate_devenv.errors import ComposeValidationError


class _ComposeDumper(yaml.SafeDumper):
    # Render `pgdata:` rather than `pgdata: null`, and never emit &id anchors.
    def ignore_aliases(self, data) -> bool:
        return True


def _represent_none(dumper: yaml.SafeDumper, _data: None) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:null", "")


_ComposeDumper.add_representer(type(None), _represent_none)


def dump_document(document: ComposeDocument) -> str:
    return yaml.dump(
        document.to_compose_dict(),
        Dumper=_ComposeDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def load_document(text: str) -> ComposeDocument:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ComposeValidationError(f"malformed YAML: {e}") from e
    if not isinstance(data, dict):
        raise ComposeValidationError("compose document root must be a mapping")
    try:
        return ComposeDocument.model_validate(data)
    except ValidationError as e:
        raise ComposeValidationError(str(e)) from e


def read_document(path: Path) -> ComposeDocument:
    return load_document(Path(path).read_text(encoding="utf-8"))


def write_document(document: ComposeDocument, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_document(document), encoding="utf-8")
    return path
