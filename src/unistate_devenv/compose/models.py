"""
unistate_devenv.compose.models

Typed records for the compose file format.

Responsibilities:
- Model Service Definitions, named volumes and the top-level document.
- Normalize the loose shapes compose accepts (env lists, numeric ports, string commands).
- Validate cross references: dependencies, named-volume mounts, port syntax, cycles.

Unknown keys are kept (`extra="allow"`) so a parsed hand-written file dumps back
without losing anything this package does not model.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from unistate_devenv.errors import ComposeValidationError

DependencyConditionName = Literal[
    "service_started", "service_healthy", "service_completed_successfully"
]


@dataclass(frozen=True, slots=True)
class VolumeMount:
    source: str
    target: str
    mode: str | None = None

    @property
    def is_named(self) -> bool:
        # Bind mounts start with a path; everything else names a volume.
        return not self.source.startswith((".", "/", "~"))

    @classmethod
    def parse(cls, spec: str) -> VolumeMount | None:
        parts = spec.split(":")
        if len(parts) == 1:
            # Anonymous volume: a container path only.
            return None
        if len(parts) > 3 or not parts[0] or not parts[1]:
            raise ComposeValidationError(f"invalid volume mount {spec!r}")
        return cls(source=parts[0], target=parts[1], mode=parts[2] if len(parts) == 3 else None)


@dataclass(frozen=True, slots=True)
class PortMapping:
    host: int
    container: int

    @classmethod
    def parse(cls, spec: str) -> PortMapping:
        body = spec.split("/", 1)[0]
        parts = body.split(":")
        # "ip:host:container" is legal compose; the ip is not modelled.
        if len(parts) == 3:
            parts = parts[1:]
        if len(parts) != 2:
            raise ComposeValidationError(f"port mapping {spec!r} must be host:container")
        try:
            host, container = int(parts[0]), int(parts[1])
        except ValueError:
            raise ComposeValidationError(f"port mapping {spec!r} is not numeric") from None
        for port in (host, container):
            if not 1 <= port <= 65535:
                raise ComposeValidationError(f"port {port} in {spec!r} out of range")
        return cls(host=host, container=container)

    def __str__(self) -> str:
        return f"{self.host}:{self.container}"


class HealthCheck(BaseModel):
    model_config = ConfigDict(extra="allow")

    test: list[str] | str
    interval: str | None = None
    timeout: str | None = None
    retries: int | None = None
    start_period: str | None = None


class DependencyCondition(BaseModel):
    model_config = ConfigDict(extra="allow")

    condition: DependencyConditionName = "service_started"


class ServiceDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    image: str
    environment: dict[str, str] | None = None
    volumes: list[str] | None = None
    ports: list[str] | None = None
    healthcheck: HealthCheck | None = None
    depends_on: list[str] | dict[str, DependencyCondition] | None = None
    command: list[str] | str | None = None
    stdin_open: bool | None = None
    tty: bool | None = None

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value: Any) -> Any:
        # Compose allows both `KEY: value` mappings and `- KEY=value` lists.
        if isinstance(value, list):
            env: dict[str, str] = {}
            for item in value:
                key, sep, val = str(item).partition("=")
                env[key] = val if sep else ""
            return env
        if isinstance(value, dict):
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value

    @field_validator("ports", mode="before")
    @classmethod
    def _check_port_items(cls, value: Any) -> Any:
        if isinstance(value, list):
            for item in value:
                # YAML 1.1 reads unquoted `22:22` as the base-60 integer 1342.
                if isinstance(item, int) and not isinstance(item, bool):
                    raise ComposeValidationError(
                        f"port {item!r} was read as a number; quote the mapping, e.g. \"22:22\""
                    )
        return value

    def dependencies(self) -> list[str]:
        if self.depends_on is None:
            return []
        return list(self.depends_on)

    def dependency_condition(self, name: str) -> DependencyConditionName | None:
        if isinstance(self.depends_on, dict):
            dep = self.depends_on.get(name)
            return dep.condition if dep is not None else None
        if self.depends_on and name in self.depends_on:
            return "service_started"
        return None

    def command_argv(self) -> list[str]:
        if self.command is None:
            return []
        if isinstance(self.command, str):
            return shlex.split(self.command)
        return list(self.command)

    def mounts(self) -> list[VolumeMount]:
        parsed = (VolumeMount.parse(spec) for spec in self.volumes or [])
        return [m for m in parsed if m is not None]

    def port_mappings(self) -> list[PortMapping]:
        return [PortMapping.parse(spec) for spec in self.ports or []]


class VolumeDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    driver: str | None = None
    external: bool | None = None
    name: str | None = None


class ComposeDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: str | None = None
    services: dict[str, ServiceDefinition]
    volumes: dict[str, VolumeDefinition | None] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _stringify_version(cls, value: Any) -> Any:
        # `version: 3.8` unquoted arrives as a float.
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("volumes", mode="before")
    @classmethod
    def _empty_volumes(cls, value: Any) -> Any:
        return {} if value is None else value

    @model_validator(mode="after")
    def _check_references(self) -> ComposeDocument:
        for name, service in self.services.items():
            for dep in service.dependencies():
                if dep == name:
                    raise ComposeValidationError(f"service {name!r} depends on itself")
                if dep not in self.services:
                    raise ComposeValidationError(
                        f"service {name!r} depends on undefined service {dep!r}"
                    )
            for mount in service.mounts():
                if mount.is_named and mount.source not in self.volumes:
                    raise ComposeValidationError(
                        f"service {name!r} mounts unregistered volume {mount.source!r}"
                    )
            service.port_mappings()
        self.start_order()
        return self

    def start_order(self) -> list[str]:
        """
        Services in the order an orchestrator issues start actions: every
        dependency before its dependents, ties broken by declaration order.
        """

        order: list[str] = []
        state: dict[str, str] = {}

        def visit(name: str, trail: tuple[str, ...]) -> None:
            mark = state.get(name)
            if mark == "done":
                return
            if mark == "active":
                cycle = " -> ".join((*trail, name))
                raise ComposeValidationError(f"dependency cycle: {cycle}")
            state[name] = "active"
            for dep in self.services[name].dependencies():
                visit(dep, (*trail, name))
            state[name] = "done"
            order.append(name)

        for name in self.services:
            visit(name, ())
        return order

    def to_compose_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.version is not None:
            data["version"] = self.version
        data["services"] = {
            name: svc.model_dump(mode="json", exclude_none=True)
            for name, svc in self.services.items()
        }
        if self.volumes:
            data["volumes"] = {
                name: (vol.model_dump(mode="json", exclude_none=True) or None) if vol else None
                for name, vol in self.volumes.items()
            }
        for key, value in (self.model_extra or {}).items():
            data[key] = value
        return data


# --- Module Notes -----------------------------------------------------------
# Validation raises ComposeValidationError directly (not ValueError) so pydantic
# does not wrap reference errors into a ValidationError.
