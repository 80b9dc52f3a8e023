"""
tests.conftest

Shared fixtures.

Responsibilities:
- Settings pointed at a temp compose file.
- A ComposeRuntime that records argv instead of spawning docker.
- The hand-written two-service compose file the generator replaced.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from unistate_devenv.runtime import ComposeRuntime
from unistate_devenv.settings import Settings

HAND_WRITTEN_COMPOSE = """\
version: "3"

services:
  db:
    image: postgres
    environment:
      POSTGRES_DB: unistate_dev
      POSTGRES_USER: unistate_dev
      POSTGRES_PASSWORD: unistate_dev
    volumes:
      - pgdata:/var/lib/postgresql/data
    ports:
      - "5432:5432"

  psql:
    image: postgres
    depends_on:
      - db
    command: ["psql", "-h", "db", "-U", "unistate_dev", "unistate_dev"]

volumes:
  pgdata:
"""


class RecordingRuntime(ComposeRuntime):
    """Records every argv; replies with queued (returncode, stdout, stderr) tuples."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.calls: list[tuple[list[str], bool]] = []
        self.replies: list[tuple[int, str, str]] = []

    async def _exec(self, argv: Sequence[str], *, capture: bool = True) -> tuple[int, str, str]:
        self.calls.append((list(argv), capture))
        if self.replies:
            return self.replies.pop(0)
        return (0, "", "")

    def subcommands(self) -> list[list[str]]:
        # Drop the `docker compose -f X -p Y` prefix so assertions read naturally.
        out = []
        for argv, _ in self.calls:
            out.append(argv[6:] if argv[1] == "compose" else argv[1:])
        return out


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(compose_file=tmp_path / "docker-compose.yml")


@pytest.fixture
def runtime(settings: Settings) -> RecordingRuntime:
    return RecordingRuntime(settings)


@pytest.fixture
def hand_written_text() -> str:
    return HAND_WRITTEN_COMPOSE


@pytest.fixture
def hand_written_compose(tmp_path: Path) -> Path:
    path = tmp_path / "hand-written.yml"
    path.write_text(HAND_WRITTEN_COMPOSE, encoding="utf-8")
    return path
