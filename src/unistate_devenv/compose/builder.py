"""
unistate_devenv.compose.builder

Builds the unistate dev environment document from `Settings`.

Responsibilities:
- Database Service: postgres image, credential env, data volume, published port,
  and (with the healthy gate) a pg_isready healthcheck.
- Administrative Client Service: psql against the db service, started after it.
- Volume registry with the single named data volume.

Both services read the credential triple from `settings.credentials`; nothing is
duplicated as a literal.
"""

from __future__ import annotations

import shlex

from unistate_devenv.compose.models import (
    ComposeDocument,
    DependencyCondition,
    HealthCheck,
    PortMapping,
    ServiceDefinition,
)
from unistate_devenv.settings import Settings


def compose_literal(value: str) -> str:
    # Compose interpolates `$NAME` in values; `$$` is a literal dollar sign.
    return value.replace("$", "$$")


def build_db_service(settings: Settings) -> ServiceDefinition:
    creds = settings.credentials
    healthcheck = None
    if settings.readiness_gate == "healthy":
        healthcheck = HealthCheck(
            test=[
                "CMD-SHELL",
                compose_literal(
                    f"pg_isready -U {shlex.quote(creds.user)} -d {shlex.quote(creds.database)}"
                ),
            ],
            interval=f"{settings.healthcheck_interval_s}s",
            timeout=f"{settings.healthcheck_timeout_s}s",
            retries=settings.healthcheck_retries,
        )
    return ServiceDefinition(
        image=settings.image,
        environment={
            "POSTGRES_DB": compose_literal(creds.database),
            "POSTGRES_USER": compose_literal(creds.user),
            "POSTGRES_PASSWORD": compose_literal(creds.password),
        },
        volumes=[f"{settings.volume_name}:{settings.data_path}"],
        ports=[str(PortMapping(host=settings.host_port, container=settings.container_port))],
        healthcheck=healthcheck,
    )


def build_client_service(settings: Settings) -> ServiceDefinition:
    creds = settings.credentials
    if settings.readiness_gate == "healthy":
        depends_on: list[str] | dict[str, DependencyCondition] = {
            settings.db_service: DependencyCondition(condition="service_healthy")
        }
    else:
        depends_on = [settings.db_service]

    command = ["psql", "-h", settings.db_service, "-U", compose_literal(creds.user)]
    if settings.container_port != 5432:
        command += ["-p", str(settings.container_port)]
    command.append(compose_literal(creds.database))

    return ServiceDefinition(
        image=settings.image,
        environment={"PGPASSWORD": compose_literal(creds.password)},
        depends_on=depends_on,
        command=command,
        stdin_open=True,
        tty=True,
    )


def build_document(settings: Settings) -> ComposeDocument:
    return ComposeDocument(
        version=settings.compose_version or None,
        services={
            settings.db_service: build_db_service(settings),
            settings.client_service: build_client_service(settings),
        },
        volumes={settings.volume_name: None},
    )


# --- Module Notes -----------------------------------------------------------
# The client reaches the server over the compose network, so it uses the
# container port; the host port only matters to tooling running on the host.
