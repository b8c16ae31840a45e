"""Feature toggle helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import Settings

log = logging.getLogger(__name__)


@dataclass
class RegistrarSwitch:
    """Decide which startup tasks run for the current settings."""

    settings: Settings

    def registration_on(self) -> bool:
        enabled = bool(self.settings.eureka_switch_register)
        if not enabled:
            return False

        missing = [
            name
            for name in ("instance_app_name", "instance_ip_addr", "instance_port")
            if getattr(self.settings, name) in (None, "")
        ]
        if not self.settings.server_url_list():
            missing.append("eureka_server_urls")
        if missing:
            log.info("Eureka registration requires %s, disabling registration.", ", ".join(missing))
            return False
        return True
