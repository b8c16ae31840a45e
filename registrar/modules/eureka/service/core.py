"""Registration lifecycle against one Eureka server.

The client is either *idle* (nothing registered, no heartbeat) or *active*
(an instance is registered and a heartbeat schedule is running). Both
halves of the active state live in a single ``_Registration`` value, so a
heartbeat schedule never outlives its instance.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from registrar.modules.eureka.client import (
    IntervalScheduler,
    RequestExecutor,
    ScheduleHandle,
    json_body,
)
from registrar.modules.eureka.domain import ApiVersion, Instance
from registrar.modules.eureka.util import build_url

REGISTER_SUCCESS_CODE = 204
DEREGISTER_SUCCESS_CODE = 200
DEFAULT_HEARTBEAT_INTERVAL = 60.0


@dataclass(frozen=True)
class _Registration:
    instance: Instance
    schedule: ScheduleHandle


class EurekaClient:
    """Register one instance with a Eureka server and keep its lease alive.

    Usage:
        async with EurekaClient("http://127.0.0.1:8761/eureka/") as client:
            ok = await client.register(Instance("demo", "10.0.0.5", "up", 8080))
            ...
            await client.deregister()

    ``register`` and ``deregister`` report failures as ``False``; they do not
    raise for network problems. Heartbeat failures are only logged, the next
    tick is the retry.
    """

    def __init__(
        self,
        server_address: str,
        api_version: ApiVersion = ApiVersion.V1,
        log_enabled: bool = False,
        *,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        executor: Optional[RequestExecutor] = None,
        scheduler: Optional[IntervalScheduler] = None,
    ) -> None:
        api_version = ApiVersion(api_version)
        # Fail fast on a malformed address instead of on the first request.
        build_url(server_address, "", api_version)
        if heartbeat_interval <= 0:
            raise ValueError(f"heartbeat_interval must be positive, got {heartbeat_interval}")

        self.server_address = server_address
        self.api_version = api_version
        self.log_enabled = log_enabled
        self.heartbeat_interval = heartbeat_interval
        self.log = logging.getLogger(self.__class__.__name__)

        self._owns_executor = executor is None
        self._executor = executor or RequestExecutor(
            server_address,
            api_version=api_version,
            log_enabled=log_enabled,
            client=client,
            timeout=timeout,
        )
        self._scheduler = scheduler or IntervalScheduler()
        self._lock = asyncio.Lock()
        self._registration: Optional[_Registration] = None
        self._heartbeat_task: Optional[asyncio.Task] = None

    @classmethod
    def from_urls(
        cls,
        urls: str,
        api_version: ApiVersion = ApiVersion.V1,
        log_enabled: bool = False,
        **kwargs,
    ) -> List["EurekaClient"]:
        """Build one client per server in a comma separated list.

        ``"http://a:8761/eureka/,http://b:8761/eureka/"`` gives two clients.
        Blank and repeated entries are skipped.
        """
        addresses = dict.fromkeys(url.strip() for url in urls.split(",") if url.strip())
        return [cls(url, api_version=api_version, log_enabled=log_enabled, **kwargs) for url in addresses]

    @property
    def instance(self) -> Optional[Instance]:
        registration = self._registration
        return registration.instance if registration else None

    @property
    def is_registered(self) -> bool:
        return self._registration is not None

    async def register(self, instance: Instance) -> bool:
        """``POST /apps/{appID}``. Starts heartbeating on 204."""
        async with self._lock:
            current = self._registration
            if current is not None:
                if current.instance != instance:
                    self.log.warning(
                        "Already registered as %s on %s, ignoring %s",
                        current.instance.instance_id,
                        self.server_address,
                        instance.instance_id,
                    )
                return True

            result = await self._executor.execute(
                f"apps/{instance.app_id}",
                "POST",
                build_request=json_body(instance.to_dict()),
            )
            if not result.ok_for(REGISTER_SUCCESS_CODE):
                self.log.warning(
                    "Register %s on %s failed with status %s",
                    instance.app,
                    self.server_address,
                    result.status_code,
                )
                return False

            schedule = self._scheduler.schedule(
                self.heartbeat_interval,
                self._on_heartbeat_tick,
                name=f"eureka-heartbeat-{instance.instance_id}",
            )
            self._registration = _Registration(instance=instance, schedule=schedule)
            self.log.info("Registered %s on %s", instance.app, self.server_address)
            self._on_heartbeat_tick()
            return True

    async def deregister(self) -> bool:
        """``DELETE /apps/{appID}/{instanceId}``. Stops heartbeating on 200."""
        async with self._lock:
            current = self._registration
            if current is None:
                return True

            instance = current.instance
            result = await self._executor.execute(self._instance_path(instance), "DELETE")
            if not result.ok_for(DEREGISTER_SUCCESS_CODE):
                self.log.warning(
                    "Deregister %s on %s failed with status %s",
                    instance.app,
                    self.server_address,
                    result.status_code,
                )
                return False

            self._clear(current)
            self.log.info("Deregistered %s from %s", instance.app, self.server_address)
            return True

    async def aclose(self) -> None:
        """Stop heartbeating and release the transport. Does not deregister."""
        async with self._lock:
            if self._registration is not None:
                self._clear(self._registration)
            self._cancel_heartbeat()
        if self._owns_executor:
            await self._executor.aclose()

    async def __aenter__(self) -> "EurekaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _clear(self, registration: _Registration) -> None:
        registration.schedule.cancel()
        self._cancel_heartbeat()
        self._registration = None

    def _on_heartbeat_tick(self) -> None:
        registration = self._registration
        if registration is None:
            return
        self._cancel_heartbeat()
        self._heartbeat_task = asyncio.get_running_loop().create_task(
            self._send_heartbeat(registration.instance)
        )

    def _cancel_heartbeat(self) -> None:
        task = self._heartbeat_task
        self._heartbeat_task = None
        if task is not None and not task.done():
            task.cancel()

    async def _send_heartbeat(self, instance: Instance) -> None:
        """``PUT /apps/{appID}/{instanceId}``; the outcome is only logged."""
        try:
            result = await self._executor.execute(self._instance_path(instance), "PUT")
        except Exception:  # noqa: BLE001
            self.log.exception("heartbeat %s on %s failed", instance.app, self.server_address)
            return
        level = logging.INFO if self.log_enabled else logging.DEBUG
        self.log.log(level, "heartbeat %s@%s", instance.app, result.status_code)

    @staticmethod
    def _instance_path(instance: Instance) -> str:
        return f"apps/{instance.app_id}/{instance.instance_id}"

    def __repr__(self) -> str:
        return (
            f"EurekaClient(server_address={self.server_address!r}, "
            f"api_version={self.api_version.name}, registered={self.is_registered})"
        )
