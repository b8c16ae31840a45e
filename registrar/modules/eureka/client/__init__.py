"""HTTP and scheduling collaborators of the registration client."""

from .executor import FAILED_STATUS_CODE, ExchangeResult, RequestExecutor, json_body
from .scheduler import IntervalScheduler, ScheduleHandle

__all__ = [
    "FAILED_STATUS_CODE",
    "ExchangeResult",
    "IntervalScheduler",
    "RequestExecutor",
    "ScheduleHandle",
    "json_body",
]
