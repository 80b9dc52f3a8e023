"""
unistate_devenv.readiness

Readiness gate for the Database Service.

Responsibilities:
- Single-shot TCP probe (what an ungated client effectively does).
- Retry-with-backoff loops for the TCP listener and for SQL-level readiness.

Start order alone does not mean the listener accepts connections; callers that
open a client session go through `wait_for_port` / `wait_for_database` first.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from unistate_devenv.errors import ReadinessTimeout
from unistate_devenv.observability.logging import get_logger

log = get_logger(__name__)


async def probe_tcp(host: str, port: int, *, timeout: float = 1.0) -> None:
    # Raises OSError (e.g. ConnectionRefusedError) or TimeoutError if nothing is listening.
    _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


async def probe_database(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _retry(
    target: str,
    attempt: Callable[[], Awaitable[None]],
    *,
    retry_on: tuple[type[BaseException], ...],
    timeout: float,
    initial_delay: float,
    max_delay: float,
) -> int:
    deadline = time.monotonic() + timeout
    delay = initial_delay
    attempts = 0
    while True:
        attempts += 1
        try:
            await attempt()
        except retry_on as e:
            remaining = deadline - time.monotonic()
            log.debug("not_ready", target=target, attempt=attempts, error=repr(e))
            if remaining <= 0:
                raise ReadinessTimeout(target, timeout, e) from e
            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * 2, max_delay)
            continue
        log.info("ready", target=target, attempts=attempts)
        return attempts


async def wait_for_port(
    host: str,
    port: int,
    *,
    timeout: float = 60.0,
    initial_delay: float = 0.1,
    max_delay: float = 2.0,
) -> int:
    """
    Poll until `host:port` accepts a TCP connection. Returns the number of attempts;
    raises `ReadinessTimeout` once `timeout` seconds have passed.
    """

    return await _retry(
        f"tcp://{host}:{port}",
        lambda: probe_tcp(host, port, timeout=min(1.0, max(timeout, 0.01))),
        retry_on=(OSError, asyncio.TimeoutError),
        timeout=timeout,
        initial_delay=initial_delay,
        max_delay=max_delay,
    )


async def wait_for_database(
    engine: AsyncEngine,
    *,
    timeout: float = 60.0,
    initial_delay: float = 0.25,
    max_delay: float = 2.0,
) -> int:
    # The listener can accept TCP while the entrypoint is still running initdb;
    # only a successful query means the database is usable.
    return await _retry(
        f"database {engine.url.database}",
        lambda: probe_database(engine),
        retry_on=(OSError, asyncio.TimeoutError, DBAPIError),
        timeout=timeout,
        initial_delay=initial_delay,
        max_delay=max_delay,
    )


# --- Module Notes -----------------------------------------------------------
# Backoff doubles per attempt and is capped at `max_delay`; the final sleep is
# clipped to the remaining budget so the deadline is honoured.
