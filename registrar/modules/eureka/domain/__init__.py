"""Domain objects for the eureka module."""

from .enums import ApiVersion, InstanceStatus
from .instance import Instance

__all__ = ["ApiVersion", "Instance", "InstanceStatus"]
