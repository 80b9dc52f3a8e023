"""
tests.test_environment

Volume lifecycle over a recording runtime: create -> first-init -> reuse -> destroy.
"""

from __future__ import annotations

import socket

import pytest

from unistate_devenv.compose.io import read_document
from unistate_devenv.environment import DevEnvironment
from unistate_devenv.settings import Settings


@pytest.fixture
def ready_calls(monkeypatch: pytest.MonkeyPatch) -> list[float | None]:
    calls: list[float | None] = []

    async def fake_wait_ready(self, *, timeout: float | None = None) -> None:
        calls.append(timeout)

    monkeypatch.setattr(DevEnvironment, "wait_ready", fake_wait_ready)
    return calls


@pytest.mark.asyncio
async def test_up_renders_then_starts_db_and_waits(
    settings: Settings, runtime, ready_calls
) -> None:
    env = DevEnvironment(settings, runtime)

    await env.up()

    assert settings.compose_file.exists()
    assert sorted(read_document(settings.compose_file).services) == ["db", "psql"]
    assert runtime.subcommands() == [["volume", "inspect", "unistate_pgdata"], ["up", "-d", "db"]]
    assert ready_calls == [None]


@pytest.mark.asyncio
async def test_up_without_wait(settings: Settings, runtime, ready_calls) -> None:
    await DevEnvironment(settings, runtime).up(wait=False)
    assert ready_calls == []


@pytest.mark.asyncio
async def test_stop_never_removes_the_volume(settings: Settings, runtime) -> None:
    await DevEnvironment(settings, runtime).stop()
    assert runtime.subcommands() == [["stop"]]


@pytest.mark.asyncio
async def test_reset_destroys_volume_then_reinitializes(
    settings: Settings, runtime, ready_calls
) -> None:
    await DevEnvironment(settings, runtime).reset()

    assert runtime.subcommands() == [
        ["down", "--volumes"],
        ["volume", "inspect", "unistate_pgdata"],
        ["up", "-d", "db"],
    ]
    assert ready_calls == [None]


@pytest.mark.asyncio
async def test_psql_waits_for_readiness_before_client(
    settings: Settings, runtime, ready_calls
) -> None:
    runtime.replies.extend([(0, "", ""), (0, "", "")])

    code = await DevEnvironment(settings, runtime).psql()

    assert code == 0
    assert ready_calls == [None]
    assert runtime.subcommands() == [["up", "-d", "db"], ["run", "--rm", "psql"]]


@pytest.mark.asyncio
async def test_status_with_nothing_listening(tmp_path, runtime) -> None:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    settings = Settings(connect_host="127.0.0.1", host_port=port, compose_file=tmp_path / "c.yml")
    runtime.replies.append((1, "", "No such volume"))

    status = await DevEnvironment(settings, runtime).status()

    assert status.as_dict() == {
        "port_open": False,
        "database_ready": False,
        "volume_present": False,
    }
