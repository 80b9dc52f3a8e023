"""
CLI for the unistate local development environment.

Renders the compose definition for the `db` + `psql` services and drives the
environment through Docker Compose: bring it up behind a readiness gate, stop
it while keeping the data volume, destroy it, or open a psql session.
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import click

from unistate_devenv import __version__
from unistate_devenv.compose.builder import build_document
from unistate_devenv.compose.consistency import find_credential_drift
from unistate_devenv.compose.io import dump_document, read_document, write_document
from unistate_devenv.errors import DevEnvError
from unistate_devenv.observability.logging import configure_logging
from unistate_devenv.settings import Settings, get_settings

T = TypeVar("T")


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning library errors into a one-line message and exit 1."""
    try:
        return asyncio.run(coro)
    except DevEnvError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from e


def _env(ctx: click.Context):
    from unistate_devenv.environment import DevEnvironment

    return DevEnvironment(ctx.obj["settings"])


@click.group()
@click.version_option(version=__version__, prog_name="unistate-devenv")
@click.pass_context
def main(ctx: click.Context) -> None:
    """
    unistate-devenv - local PostgreSQL + psql environment.
    """
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = get_settings()
    settings: Settings = ctx.obj["settings"]
    # Logs go to stderr so `render -o -` stays pipeable.
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, stream=sys.stderr
    )


@main.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write here instead of the configured compose file; '-' for stdout.",
)
@click.pass_context
def render(ctx: click.Context, output: Path | None) -> None:
    """Render the compose definition."""
    settings: Settings = ctx.obj["settings"]
    document = build_document(settings)
    if output is not None and str(output) == "-":
        click.echo(dump_document(document), nl=False)
        return
    path = write_document(document, output or settings.compose_file)
    click.echo(f"✓ Wrote {path}")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def validate(ctx: click.Context, path: Path) -> None:
    """Parse a compose file and check db/psql credentials agree."""
    settings: Settings = ctx.obj["settings"]
    try:
        document = read_document(path)
    except DevEnvError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from e

    click.echo(f"services: {', '.join(document.start_order())}")
    click.echo(f"volumes: {', '.join(document.volumes) or '-'}")

    drift = find_credential_drift(
        document, db_service=settings.db_service, client_service=settings.client_service
    )
    if drift:
        for item in drift:
            click.echo(f"✗ {item}", err=True)
        raise SystemExit(1)
    click.echo("✓ client and server credentials agree")


@main.command()
@click.option(
    "--wait/--no-wait", default=True, show_default=True, help="Block until the database answers."
)
@click.pass_context
def up(ctx: click.Context, wait: bool) -> None:
    """Start the database service."""
    _run(_env(ctx).up(wait=wait))
    click.echo("✓ database up" + (" and ready" if wait else ""))


@main.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop containers; the data volume is kept."""
    _run(_env(ctx).stop())
    click.echo("✓ stopped")


@main.command()
@click.option("--volumes", is_flag=True, help="Also remove the data volume.")
@click.pass_context
def down(ctx: click.Context, volumes: bool) -> None:
    """Remove containers (and optionally the data volume)."""
    env = _env(ctx)
    if volumes:
        _run(env.destroy())
    else:
        env.render()
        _run(env.runtime.down())
    click.echo("✓ down" + (" (volume removed)" if volumes else ""))


@main.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def reset(ctx: click.Context, yes: bool) -> None:
    """Destroy the data volume and re-initialize an empty database."""
    settings: Settings = ctx.obj["settings"]
    if not yes:
        click.confirm(f"Delete volume {settings.volume_name!r} and all its data?", abort=True)
    _run(_env(ctx).reset())
    click.echo(f"✓ fresh database {settings.db_name!r} ready")


@main.command()
@click.pass_context
def psql(ctx: click.Context) -> None:
    """Open an interactive psql session once the database is ready."""
    code = _run(_env(ctx).psql())
    raise SystemExit(code)


@main.command()
@click.option(
    "--timeout", type=float, default=None, help="Seconds to wait (default: startup_timeout_s)."
)
@click.pass_context
def wait(ctx: click.Context, timeout: float | None) -> None:
    """Wait until the database accepts connections and answers queries."""
    _run(_env(ctx).wait_ready(timeout=timeout))
    click.echo("✓ ready")


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Print port, database and volume status as JSON."""
    result = _run(_env(ctx).status())
    click.echo(json.dumps(result.as_dict(), indent=2))


@main.command()
@click.option("--write-probe", "label", default=None, help="Insert a probe row with this label.")
@click.pass_context
def check(ctx: click.Context, label: str | None) -> None:
    """Connect with the configured credentials and report session identity and probe rows."""
    settings: Settings = ctx.obj["settings"]
    report = _run(_check(settings, label))
    click.echo(json.dumps(report, indent=2))


async def _check(settings: Settings, label: str | None) -> dict[str, Any]:
    from sqlalchemy.exc import DBAPIError

    from unistate_devenv.db.identity import describe_session
    from unistate_devenv.db.init_db import ensure_probe_table
    from unistate_devenv.db.repositories.probes import ProbeRepo
    from unistate_devenv.db.session import create_engine, create_sessionmaker

    engine = create_engine(settings)
    try:
        await ensure_probe_table(engine)
        async with create_sessionmaker(engine)() as session:
            info = await describe_session(session)
            repo = ProbeRepo(session)
            if label is not None:
                await repo.add(label)
                await session.commit()
            labels = await repo.list_labels()
            count = await repo.count()
    except (OSError, DBAPIError) as e:
        raise DevEnvError(f"cannot query {settings.db_name!r} as {settings.db_user!r}: {e}") from e
    finally:
        await engine.dispose()
    return {"session": info.as_dict(), "probe_count": count, "probe_labels": labels}


if __name__ == "__main__":
    main()
