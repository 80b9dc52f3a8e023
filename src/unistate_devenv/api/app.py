"""
unistate_devenv.api.app

FastAPI app factory for the dev environment status service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Create and dispose the async engine used for readiness and session probes.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from unistate_devenv import __version__
from unistate_devenv.api.routers.environment import router as environment_router
from unistate_devenv.api.routers.health import router as health_router
from unistate_devenv.db.session import create_engine, create_sessionmaker
from unistate_devenv.observability.logging import configure_logging, get_logger
from unistate_devenv.observability.middleware import RequestLogMiddleware
from unistate_devenv.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("startup", database=settings.db_name, port=settings.host_port)
        # Creating the engine does not connect; a stopped database only fails /readyz.
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="unistate dev environment",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestLogMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(environment_router, tags=["environment"])
    return app
