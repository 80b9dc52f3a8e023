"""
unistate_devenv.runtime

Async wrapper around the Docker Compose CLI.

Responsibilities:
- Run `docker compose -f <file> -p <project> ...` subcommands.
- Surface non-zero exits verbatim as `ComposeCommandError`.
- Run the interactive client with the terminal's streams.

The orchestrator owns process state (starting/running/stopped); this module only
issues commands and reports what came back.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from unistate_devenv.errors import ComposeCommandError
from unistate_devenv.observability.logging import get_logger
from unistate_devenv.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


class ComposeRuntime:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def volume_id(self) -> str:
        # Compose prefixes named volumes with the project name.
        return f"{self._settings.project_name}_{self._settings.volume_name}"

    def compose_argv(self, *args: str) -> list[str]:
        s = self._settings
        return [s.docker_bin, "compose", "-f", str(s.compose_file), "-p", s.project_name, *args]

    async def _exec(self, argv: Sequence[str], *, capture: bool = True) -> tuple[int, str, str]:
        pipe = asyncio.subprocess.PIPE if capture else None
        try:
            proc = await asyncio.create_subprocess_exec(*argv, stdout=pipe, stderr=pipe)
        except FileNotFoundError as e:
            raise ComposeCommandError(argv, 127, str(e)) from e
        out, err = await proc.communicate()
        return (
            proc.returncode if proc.returncode is not None else -1,
            (out or b"").decode("utf-8", errors="replace"),
            (err or b"").decode("utf-8", errors="replace"),
        )

    async def run(self, argv: Sequence[str], *, check: bool = True) -> CommandResult:
        argv = list(argv)
        log.debug("command", argv=argv)
        code, out, err = await self._exec(argv)
        if check and code != 0:
            log.error("command_failed", argv=argv, returncode=code, stderr=err.strip())
            raise ComposeCommandError(argv, code, err)
        return CommandResult(argv=argv, returncode=code, stdout=out, stderr=err)

    async def up(self, *services: str, detach: bool = True) -> CommandResult:
        args = ["up"]
        if detach:
            args.append("-d")
        return await self.run(self.compose_argv(*args, *services))

    async def start(self) -> CommandResult:
        return await self.run(self.compose_argv("start"))

    async def stop(self) -> CommandResult:
        return await self.run(self.compose_argv("stop"))

    async def down(self, *, remove_volumes: bool = False) -> CommandResult:
        args = ["down"]
        if remove_volumes:
            args.append("--volumes")
        return await self.run(self.compose_argv(*args))

    async def volume_exists(self) -> bool:
        result = await self.run(
            [self._settings.docker_bin, "volume", "inspect", self.volume_id], check=False
        )
        return result.returncode == 0

    async def run_client(self, *, interactive: bool = True) -> int:
        """
        `compose run --rm <client>`; with `interactive` the session inherits this
        process's terminal. Returns the client's exit code without raising.
        """

        argv = self.compose_argv("run", "--rm")
        if not interactive:
            argv.append("-T")
        argv.append(self._settings.client_service)
        log.info("client_session", service=self._settings.client_service)
        code, _, err = await self._exec(argv, capture=not interactive)
        if code != 0:
            log.warning("client_exit", returncode=code, stderr=err.strip() or None)
        return code


# --- Module Notes -----------------------------------------------------------
# `run --rm` starts dependencies as declared in the document; with the healthy
# gate compose itself waits for the db healthcheck before starting psql.
