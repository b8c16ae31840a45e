"""Startup and shutdown wiring for the registrar service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from registrar.modules.eureka import EurekaClient

from .services import RegistrationService
from .settings import Settings
from .switches import RegistrarSwitch

log = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Container that wires plain-Python services with shared settings."""

    settings: Settings
    clients: Optional[List[EurekaClient]] = None
    registration_service: RegistrationService = field(init=False)

    def __post_init__(self) -> None:
        self.registration_service = RegistrationService(self.settings, clients=self.clients)


async def bootstrap_services(container: ServiceContainer, switches: RegistrarSwitch) -> None:
    log.info("...................RUN...................")
    if switches.registration_on():
        log.info("...................RUN-EUREKA-REGISTER-BEGIN...................")
        await container.registration_service.register_to_center()
        log.info("...................RUN-EUREKA-REGISTER-END...................")
    else:
        log.info("eureka register switch is OFF, skip registration")


async def shutdown_services(container: ServiceContainer, switches: RegistrarSwitch) -> None:
    if switches.registration_on():
        log.info("...................STOP-EUREKA-DEREGISTER...................")
        await container.registration_service.deregister_from_center()
    await container.registration_service.aclose()
