"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .api import health_router
from .bootstrap import ServiceContainer, bootstrap_services, shutdown_services
from .logging_config import configure_logging
from .settings import Settings, get_settings
from .switches import RegistrarSwitch


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    switches = RegistrarSwitch(settings)
    services = container or ServiceContainer(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await bootstrap_services(services, switches)
        try:
            yield
        finally:
            await shutdown_services(services, switches)

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.include_router(health_router)
    app.state.container = services
    app.state.switches = switches
    return app
