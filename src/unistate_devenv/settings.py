"""
unistate_devenv.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the compose generator and tooling.
- Hold the credential triple once, so both service definitions reference the same value.
- Hide the database password from repr/logging.
- Offer a cached settings instance for CLI/API wiring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


@dataclass(frozen=True, slots=True)
class Credentials:
    # {database name, username, password}; consumed by the server on first init
    # and by the client when authenticating.
    database: str
    user: str
    password: str = field(repr=False)


class Settings(BaseSettings):
    """
    - Strict env-driven configuration (prefix `UNISTATE_`)
    - Defaults reproduce the unistate_dev environment
    - Single settings object shared by generator, runtime, API and CLI
    """

    model_config = SettingsConfigDict(env_prefix="UNISTATE_", case_sensitive=False)

    service_name: str = "unistate-devenv"
    log_level: str = "INFO"

    # Compose project
    project_name: str = "unistate"
    compose_file: Path = Path("docker-compose.yml")
    compose_version: str | None = "3"
    image: str = "postgres"
    db_service: str = "db"
    client_service: str = "psql"

    # Credential triple
    db_name: str = "unistate_dev"
    db_user: str = "unistate_dev"
    db_password: str = Field(default="unistate_dev", repr=False)

    # Network + storage
    host_port: int = Field(default=5432, ge=1, le=65535)
    container_port: int = Field(default=5432, ge=1, le=65535)
    volume_name: str = "pgdata"
    data_path: str = "/var/lib/postgresql/data"

    # "healthy" gates the client on a pg_isready healthcheck; "started" only orders
    # process start, which is what a plain `depends_on: [db]` gives you.
    readiness_gate: Literal["healthy", "started"] = "healthy"
    healthcheck_interval_s: int = 2
    healthcheck_timeout_s: int = 5
    healthcheck_retries: int = 15
    startup_timeout_s: float = 60.0

    # Where the host-side tooling reaches the published port.
    connect_host: str = "localhost"
    docker_bin: str = "docker"

    # Status API
    api_host: str = "127.0.0.1"
    api_port: int = 8081

    @property
    def credentials(self) -> Credentials:
        return Credentials(database=self.db_name, user=self.db_user, password=self.db_password)

    @property
    def database_url(self) -> URL:
        # URL.create escapes credentials; never format the password into a string by hand.
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.connect_host,
            port=self.host_port,
            database=self.db_name,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each command/request.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Every literal that appears in the rendered compose document comes from here;
# changing a credential in one place keeps server and client consistent.
