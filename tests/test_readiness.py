"""
tests.test_readiness

Start order vs. readiness: a listener that comes up late.

An ungated client that connects the instant the server process starts races the
listener and fails; a client gated on `wait_for_port` always gets through.
"""

from __future__ import annotations

import asyncio
import socket
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import DBAPIError

from unistate_devenv import readiness
from unistate_devenv.errors import ReadinessTimeout
from unistate_devenv.readiness import probe_tcp, wait_for_database, wait_for_port

HOST = "127.0.0.1"


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((HOST, 0))
        return s.getsockname()[1]


async def _close_immediately(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    writer.close()


async def _listen_after(port: int, delay: float) -> asyncio.AbstractServer:
    # Stands in for a database whose process has started but whose listener has not.
    await asyncio.sleep(delay)
    return await asyncio.start_server(_close_immediately, HOST, port)


@pytest.mark.asyncio
async def test_client_at_process_start_races_the_listener() -> None:
    port = _free_port()
    server_task = asyncio.create_task(_listen_after(port, 0.5))
    try:
        with pytest.raises(OSError):
            await probe_tcp(HOST, port)
    finally:
        server = await server_task
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_gated_client_never_races() -> None:
    port = _free_port()
    server_task = asyncio.create_task(_listen_after(port, 0.3))
    try:
        attempts = await wait_for_port(HOST, port, timeout=5.0, initial_delay=0.05, max_delay=0.2)
        assert attempts > 1
        await probe_tcp(HOST, port)
    finally:
        server = await server_task
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_already_listening_is_ready_on_first_attempt() -> None:
    server = await asyncio.start_server(_close_immediately, HOST, 0)
    port = server.sockets[0].getsockname()[1]
    try:
        assert await wait_for_port(HOST, port, timeout=1.0) == 1
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_wait_for_port_times_out() -> None:
    port = _free_port()
    loop = asyncio.get_running_loop()
    started = loop.time()

    with pytest.raises(ReadinessTimeout) as excinfo:
        await wait_for_port(HOST, port, timeout=0.3, initial_delay=0.05, max_delay=0.1)

    assert isinstance(excinfo.value.last_error, OSError)
    assert f"tcp://{HOST}:{port}" in str(excinfo.value)
    assert loop.time() - started < 2.0


@pytest.mark.asyncio
async def test_wait_for_database_retries_until_query_succeeds(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls = 0

    async def flaky_probe(engine) -> None:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise DBAPIError("SELECT 1", None, Exception("the database system is starting up"))

    monkeypatch.setattr(readiness, "probe_database", flaky_probe)
    engine = SimpleNamespace(url=SimpleNamespace(database="unistate_dev"))

    attempts = await wait_for_database(engine, timeout=2.0, initial_delay=0.01, max_delay=0.02)

    assert attempts == 3


@pytest.mark.asyncio
async def test_wait_for_database_does_not_retry_unrelated_errors(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def broken_probe(engine) -> None:
        raise RuntimeError("bug")

    monkeypatch.setattr(readiness, "probe_database", broken_probe)
    engine = SimpleNamespace(url=SimpleNamespace(database="unistate_dev"))

    with pytest.raises(RuntimeError):
        await wait_for_database(engine, timeout=1.0)
