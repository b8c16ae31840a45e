"""Instance descriptor registered with the Eureka server."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .constants import (
    COUNTRY_ID,
    DATA_CENTER_CLASS,
    DATA_CENTER_NAME,
    DURATION_IN_SECS,
    MAX_PORT,
    OVERRIDDEN_STATUS,
    RENEWAL_INTERVAL_IN_SECS,
    SECURE_PORT,
)
from .enums import InstanceStatus


@dataclass(frozen=True)
class Instance:
    """One service endpoint as the registry sees it.

    Only ``app``, ``ip_addr``, ``status`` and ``port`` are stored. The
    identifiers used in registry paths are computed on every access.
    """

    app: str
    ip_addr: str
    status: InstanceStatus
    port: int

    def __post_init__(self) -> None:
        if not self.app:
            raise ValueError("app cannot be empty")
        if not self.ip_addr:
            raise ValueError("ip_addr cannot be empty")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"port must be an integer, got {self.port!r}")
        if not 0 <= self.port <= MAX_PORT:
            raise ValueError(f"port out of range: {self.port}")
        # frozen: bypass __setattr__ to normalise the status
        object.__setattr__(self, "status", InstanceStatus.parse(self.status))

    @property
    def app_id(self) -> str:
        return self.app.upper()

    @property
    def instance_id(self) -> str:
        return f"{self.ip_addr}:{self.app.lower()}:{self.port}"

    @property
    def host_name(self) -> str:
        return self.ip_addr

    @property
    def renewal_interval_in_secs(self) -> int:
        return RENEWAL_INTERVAL_IN_SECS

    @property
    def duration_in_secs(self) -> int:
        return DURATION_IN_SECS

    def to_dict(self) -> Dict[str, Any]:
        """Render the ``POST /apps/{appID}`` payload."""
        app_lower = self.app.lower()
        return {
            "instance": {
                "instanceId": self.instance_id,
                "app": self.app_id,
                "ipAddr": self.ip_addr,
                "hostName": self.host_name,
                "status": self.status.wire_value,
                "overriddenstatus": OVERRIDDEN_STATUS,
                "port": {"$": str(self.port), "@enabled": True},
                "securePort": {"$": SECURE_PORT, "@enabled": False},
                "countryId": COUNTRY_ID,
                "dataCenterInfo": {
                    "@class": DATA_CENTER_CLASS,
                    "name": DATA_CENTER_NAME,
                },
                "leaseInfo": {
                    "renewalIntervalInSecs": self.renewal_interval_in_secs,
                    "durationInSecs": self.duration_in_secs,
                },
                "vipAddress": app_lower,
                "secureVipAddress": app_lower,
                "isCoordinatingDiscoveryServer": False,
            }
        }

    def __str__(self) -> str:
        return f"app: {self.app}, ipAddr: {self.ip_addr}, status: {self.status.value}, port: {self.port}"
