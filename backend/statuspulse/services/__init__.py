"""Services for probing, recording, statistics, and scheduling."""
from .checker import CheckerService, Outcome
from .recorder import RecorderService, create_service_failure
from .dispatcher import DispatcherService, check_service
from .stats import StatsService
from .scheduler import SchedulerService

__all__ = [
    "CheckerService",
    "Outcome",
    "RecorderService",
    "create_service_failure",
    "DispatcherService",
    "check_service",
    "StatsService",
    "SchedulerService",
]
