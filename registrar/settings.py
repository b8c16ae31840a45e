"""Runtime configuration for the registrar service."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration values mapped from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field("Eureka Registrar")
    version: str = Field("0.1.0")
    log_level: str = Field("INFO")

    # Registration switch
    eureka_switch_register: bool = Field(False)

    # Registry servers, comma separated
    eureka_server_urls: str = Field("http://127.0.0.1:8761/eureka/")
    eureka_api_version: int = Field(1)
    eureka_log_enabled: bool = Field(False)
    eureka_heartbeat_interval: float = Field(60.0, gt=0)
    eureka_request_timeout: float = Field(30.0, gt=0)

    # Instance announced to every registry server
    instance_app_name: Optional[str] = Field(None)
    instance_ip_addr: Optional[str] = Field(None)
    instance_port: Optional[int] = Field(None, ge=0, le=65535)
    instance_status: str = Field("up")

    @field_validator("eureka_api_version")
    @classmethod
    def _check_api_version(cls, value: int) -> int:
        if value not in (1, 2):
            raise ValueError(f"unsupported eureka api version: {value}")
        return value

    def server_url_list(self) -> List[str]:
        return [url.strip() for url in self.eureka_server_urls.split(",") if url.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance for dependency injection."""
    return Settings()
