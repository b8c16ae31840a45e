"""Enumerations for the eureka module."""

from __future__ import annotations

from enum import Enum, IntEnum


class InstanceStatus(str, Enum):
    UP = "up"
    DOWN = "down"
    STARTING = "starting"
    OUT_OF_SERVICE = "out_of_service"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: "str | InstanceStatus") -> "InstanceStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown instance status: {value!r}") from None

    @property
    def wire_value(self) -> str:
        return self.value.upper()


class ApiVersion(IntEnum):
    """Registry REST API version. Anything above V1 adds a ``/v{N}`` segment."""

    V1 = 1
    V2 = 2

    @property
    def path_segment(self) -> str | None:
        if self is ApiVersion.V1:
            return None
        return f"v{self.value}"
