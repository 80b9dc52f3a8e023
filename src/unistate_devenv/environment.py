"""
unistate_devenv.environment

Lifecycle of the local dev environment.

Responsibilities:
- Render the compose file from settings before any compose command.
- Own the data volume lifecycle: create -> first-init -> reuse -> explicit destroy.
- Gate client sessions and `up` on database readiness.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from unistate_devenv.compose.builder import build_document
from unistate_devenv.compose.io import write_document
from unistate_devenv.db.session import create_engine
from unistate_devenv.errors import ReadinessTimeout
from unistate_devenv.observability.logging import get_logger
from unistate_devenv.readiness import probe_tcp, wait_for_database, wait_for_port
from unistate_devenv.runtime import ComposeRuntime
from unistate_devenv.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class EnvironmentStatus:
    port_open: bool
    database_ready: bool
    volume_present: bool

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class DevEnvironment:
    def __init__(self, settings: Settings, runtime: ComposeRuntime | None = None) -> None:
        self._settings = settings
        self._runtime = runtime or ComposeRuntime(settings)

    @property
    def runtime(self) -> ComposeRuntime:
        return self._runtime

    def render(self) -> Path:
        path = write_document(build_document(self._settings), self._settings.compose_file)
        log.info("rendered", path=str(path), gate=self._settings.readiness_gate)
        return path

    async def wait_ready(self, *, timeout: float | None = None) -> None:
        s = self._settings
        budget = s.startup_timeout_s if timeout is None else timeout
        loop = asyncio.get_running_loop()
        started = loop.time()
        await wait_for_port(s.connect_host, s.host_port, timeout=budget)
        remaining = max(budget - (loop.time() - started), 0.0)
        engine = create_engine(s)
        try:
            await wait_for_database(engine, timeout=remaining)
        finally:
            await engine.dispose()

    async def up(self, *, wait: bool = True) -> None:
        self.render()
        reused = await self._runtime.volume_exists()
        # An empty volume makes the image run initdb with the credential triple;
        # an existing one is reused as-is and the triple is ignored.
        log.info("volume", name=self._runtime.volume_id, phase="reuse" if reused else "first_init")
        await self._runtime.up(self._settings.db_service)
        if wait:
            await self.wait_ready()

    async def stop(self) -> None:
        self.render()
        await self._runtime.stop()
        log.info("stopped", volume_kept=True)

    async def destroy(self) -> None:
        self.render()
        await self._runtime.down(remove_volumes=True)
        log.warning("destroyed", volume=self._runtime.volume_id)

    async def reset(self) -> None:
        await self.destroy()
        await self.up(wait=True)

    async def psql(self) -> int:
        self.render()
        # `up -d` is a no-op for a running service.
        await self._runtime.up(self._settings.db_service)
        await self.wait_ready()
        return await self._runtime.run_client(interactive=True)

    async def status(self) -> EnvironmentStatus:
        s = self._settings
        port_open = True
        try:
            await probe_tcp(s.connect_host, s.host_port)
        except (OSError, asyncio.TimeoutError):
            port_open = False

        database_ready = False
        if port_open:
            engine = create_engine(s)
            try:
                await wait_for_database(engine, timeout=0)
                database_ready = True
            except ReadinessTimeout:
                database_ready = False
            finally:
                await engine.dispose()

        return EnvironmentStatus(
            port_open=port_open,
            database_ready=database_ready,
            volume_present=await self._runtime.volume_exists(),
        )


# --- Module Notes -----------------------------------------------------------
# `destroy` is the only path that removes the volume; `stop` and `down` without
# --volumes keep it.
