"""Announce this service to every configured Eureka server."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from registrar.modules.eureka import ApiVersion, EurekaClient, Instance

from .base import BaseService


class RegistrationService(BaseService):
    """Fan register/deregister out to one :class:`EurekaClient` per server."""

    def __init__(self, settings, clients: Optional[List[EurekaClient]] = None) -> None:
        super().__init__(settings)
        if clients is None:
            clients = EurekaClient.from_urls(
                settings.eureka_server_urls,
                api_version=ApiVersion(settings.eureka_api_version),
                log_enabled=settings.eureka_log_enabled,
                heartbeat_interval=settings.eureka_heartbeat_interval,
                timeout=settings.eureka_request_timeout,
            )
        self.clients = clients

    def build_instance(self) -> Instance:
        return Instance(
            app=self.settings.instance_app_name,
            ip_addr=self.settings.instance_ip_addr,
            status=self.settings.instance_status,
            port=self.settings.instance_port,
        )

    async def register_to_center(self, instance: Instance | None = None) -> Dict[str, bool]:
        instance = instance or self.build_instance()
        self.log.info("Registering %s with %d registry server(s).", instance, len(self.clients))
        results = await asyncio.gather(*(client.register(instance) for client in self.clients))
        outcome = {client.server_address: ok for client, ok in zip(self.clients, results)}
        for server, ok in outcome.items():
            if not ok:
                self.log.error("Registration with %s failed, continuing without it.", server)
        return outcome

    async def deregister_from_center(self) -> Dict[str, bool]:
        results = await asyncio.gather(*(client.deregister() for client in self.clients))
        outcome = {client.server_address: ok for client, ok in zip(self.clients, results)}
        for server, ok in outcome.items():
            if not ok:
                self.log.error("Deregistration from %s failed.", server)
        return outcome

    def status(self) -> List[Dict[str, Any]]:
        return [
            {
                "server": client.server_address,
                "registered": client.is_registered,
                "instance": str(client.instance) if client.instance else None,
            }
            for client in self.clients
        ]

    async def aclose(self) -> None:
        for client in self.clients:
            await client.aclose()
