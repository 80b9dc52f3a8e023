"""
unistate_devenv.compose.consistency

Detects drift between the Database Service's credential triple and the
Administrative Client Service's connection arguments.

Generated documents are consistent by construction; this check exists for
parsed, hand-edited files where the two services only agree by convention.
"""

from __future__ import annotations

from dataclasses import dataclass

from unistate_devenv.compose.models import ComposeDocument, ServiceDefinition

# postgres image defaults when POSTGRES_USER / POSTGRES_DB are unset.
_DEFAULT_USER = "postgres"
_DEFAULT_PORT = 5432


@dataclass(frozen=True, slots=True)
class CredentialDrift:
    field: str
    expected: str
    actual: str

    def __str__(self) -> str:
        return f"{self.field}: client uses {self.actual!r}, server expects {self.expected!r}"


@dataclass(frozen=True, slots=True)
class ClientTarget:
    host: str | None
    port: str | None
    user: str | None
    database: str | None


# Options whose value is a connection field.
_TARGET_SHORT = {"-h": "host", "-p": "port", "-U": "user", "-d": "database"}
_TARGET_LONG = {"--host": "host", "--port": "port", "--username": "user", "--dbname": "database"}

# Other psql options that consume the next argument.
_VALUE_SHORT = {"-c", "-f", "-v", "-o", "-P", "-L", "-T", "-F", "-R"}
_VALUE_LONG = {
    "--command",
    "--file",
    "--set",
    "--variable",
    "--output",
    "--pset",
    "--log-file",
    "--table-attr",
    "--field-separator",
    "--record-separator",
}


def parse_psql_target(argv: list[str]) -> ClientTarget:
    """Pull host/port/user/database out of a `psql [OPTION]... [DBNAME [USERNAME]]` argv."""

    found: dict[str, str] = {}
    positional: list[str] = []

    args = argv[1:] if argv and argv[0].endswith("psql") else list(argv)
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            positional.extend(args[i + 1 :])
            break
        if arg in _TARGET_SHORT or arg in _TARGET_LONG:
            if i + 1 < len(args):
                found[_TARGET_SHORT.get(arg) or _TARGET_LONG[arg]] = args[i + 1]
            i += 2
            continue
        if arg in _VALUE_SHORT or arg in _VALUE_LONG:
            i += 2
            continue
        key, sep, value = arg.partition("=")
        if arg.startswith("--"):
            if sep and key in _TARGET_LONG:
                found[_TARGET_LONG[key]] = value
        elif arg.startswith("-") and len(arg) > 2:
            # Attached short value, e.g. `-hdb` or `-vON_ERROR_STOP=1`.
            if arg[:2] in _TARGET_SHORT:
                found[_TARGET_SHORT[arg[:2]]] = arg[2:]
        elif not arg.startswith("-"):
            positional.append(arg)
        i += 1

    if positional:
        found.setdefault("database", positional[0])
    if len(positional) > 1:
        found.setdefault("user", positional[1])
    # psql connects to a database named after the user when none is given.
    if "database" not in found and "user" in found:
        found["database"] = found["user"]

    return ClientTarget(
        host=found.get("host"),
        port=found.get("port"),
        user=found.get("user"),
        database=found.get("database"),
    )


def _server_port(db: ServiceDefinition) -> int:
    mappings = db.port_mappings()
    return mappings[0].container if mappings else _DEFAULT_PORT


def find_credential_drift(
    document: ComposeDocument,
    *,
    db_service: str = "db",
    client_service: str = "psql",
) -> list[CredentialDrift]:
    db = document.services.get(db_service)
    client = document.services.get(client_service)
    if db is None or client is None:
        missing = db_service if db is None else client_service
        return [CredentialDrift(field="service", expected=missing, actual="<missing>")]

    env = db.environment or {}
    server_user = env.get("POSTGRES_USER") or _DEFAULT_USER
    server_db = env.get("POSTGRES_DB") or server_user
    server_password = env.get("POSTGRES_PASSWORD")

    target = parse_psql_target(client.command_argv())
    drift: list[CredentialDrift] = []

    def check(field: str, expected: str, actual: str | None) -> None:
        if actual != expected:
            drift.append(
                CredentialDrift(field=field, expected=expected, actual=actual or "<unset>")
            )

    check("host", db_service, target.host)
    check("user", server_user, target.user)
    check("database", server_db, target.database)
    if target.port is not None:
        check("port", str(_server_port(db)), target.port)

    client_password = (client.environment or {}).get("PGPASSWORD")
    if client_password is not None and server_password is not None:
        # Never echo password values into reports.
        if client_password != server_password:
            drift.append(CredentialDrift(field="password", expected="***", actual="<different>"))

    return drift
