"""Eureka registry module exports."""

from .domain import ApiVersion, Instance, InstanceStatus
from .util import build_url
from .client import ExchangeResult, IntervalScheduler, RequestExecutor, ScheduleHandle
from .service import EurekaClient

__all__ = [
    "ApiVersion",
    "EurekaClient",
    "ExchangeResult",
    "Instance",
    "InstanceStatus",
    "IntervalScheduler",
    "RequestExecutor",
    "ScheduleHandle",
    "build_url",
]
