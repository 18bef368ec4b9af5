"""
Subscriptions module.

Tier rules and the subscription lifecycle: the free daily prompt quota,
paid extensions, unlimited subscriptions, role changes and the daily
maintenance sweeps.

Public API:
- ISubscriptionService: Interface used by routes and the scheduler
- SubscriptionService: Implementation over an IUserStore
- DailyScheduler, run_daily_maintenance: Daily maintenance
- Result models (QuotaDecision, SubscriptionChange, SweepResult, ...)
"""

from .interfaces import ISubscriptionService
from .models import (
    UNIT_DAYS,
    DurationUnit,
    ExpiringSoonResult,
    ExpiringSubscription,
    MaintenanceReport,
    NotificationFailure,
    QuotaDecision,
    QuotaResetResult,
    RoleChange,
    SubscriptionChange,
    SubscriptionFailureReason,
    SubscriptionReview,
    SweepResult,
)
from .exceptions import InvalidScheduleError
from .service import SubscriptionService, FREE_DAILY_PROMPT_LIMIT
from .scheduler import (
    DailyScheduler,
    parse_run_time,
    resolve_timezone,
    run_daily_maintenance,
    seconds_until_next_run,
)

__all__ = [
    # Interface
    "ISubscriptionService",
    # Models
    "UNIT_DAYS",
    "DurationUnit",
    "ExpiringSoonResult",
    "ExpiringSubscription",
    "MaintenanceReport",
    "NotificationFailure",
    "QuotaDecision",
    "QuotaResetResult",
    "RoleChange",
    "SubscriptionChange",
    "SubscriptionFailureReason",
    "SubscriptionReview",
    "SweepResult",
    # Exceptions
    "InvalidScheduleError",
    # Implementation
    "SubscriptionService",
    "FREE_DAILY_PROMPT_LIMIT",
    "DailyScheduler",
    "parse_run_time",
    "resolve_timezone",
    "run_daily_maintenance",
    "seconds_until_next_run",
]
