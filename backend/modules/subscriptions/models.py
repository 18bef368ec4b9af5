"""
Subscription module data models.

Every lifecycle operation returns one of these result objects. Expected
outcomes (quota exhausted, invalid duration, admin account) are reported
through ``ok``/``reason`` fields rather than exceptions.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from modules.notifications.models import NotificationResult
from modules.users.models import User, UserRole


class DurationUnit(str, Enum):
    """Units accepted when extending a subscription."""

    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Fixed day counts; a "year" is always 365 days.
UNIT_DAYS: dict[DurationUnit, int] = {
    DurationUnit.DAILY: 1,
    DurationUnit.MONTHLY: 30,
    DurationUnit.YEARLY: 365,
}


class SubscriptionFailureReason(str, Enum):
    """Stable reasons for a rejected subscription or role change."""

    INVALID_DURATION = "invalid_duration"
    INVALID_UNIT = "invalid_unit"
    INVALID_ROLE = "invalid_role"
    ADMIN_ROLE_LOCKED = "admin_role_locked"


class QuotaDecision(BaseModel):
    """Whether a user may generate another prompt today."""

    allowed: bool
    role: UserRole
    used: int = Field(..., description="Prompts used today")
    limit: Optional[int] = Field(None, description="Daily limit (None = unmetered)")
    remaining: Optional[int] = Field(None, description="Prompts left today (None = unmetered)")


class SubscriptionChange(BaseModel):
    """Result of extending a subscription or making it unlimited."""

    ok: bool
    reason: Optional[SubscriptionFailureReason] = None
    user: Optional[User] = None
    added_days: Optional[int] = None
    new_expiry: Optional[datetime] = None
    unlimited: bool = False
    notification: Optional[NotificationResult] = None

    @classmethod
    def rejected(cls, reason: SubscriptionFailureReason) -> "SubscriptionChange":
        return cls(ok=False, reason=reason)


class RoleChange(BaseModel):
    """Result of an admin role change."""

    ok: bool
    reason: Optional[SubscriptionFailureReason] = None
    user: Optional[User] = None
    previous_role: Optional[UserRole] = None
    notification: Optional[NotificationResult] = None


class NotificationFailure(BaseModel):
    """A notification a sweep could not deliver."""

    recipient: str
    error: Optional[str] = None


class SweepResult(BaseModel):
    """Result of downgrading expired subscriptions."""

    downgraded_count: int = 0
    downgraded_users: list[User] = Field(default_factory=list)
    notification_failures: list[NotificationFailure] = Field(default_factory=list)
    swept_at: Optional[datetime] = None


class ExpiringSubscription(BaseModel):
    """A pro user whose subscription ends within the threshold."""

    user: User
    days_left: int


class ExpiringSoonResult(BaseModel):
    """Result of the expiring-soon notification pass."""

    days_threshold: int
    subscriptions: list[ExpiringSubscription] = Field(default_factory=list)
    notification_failures: list[NotificationFailure] = Field(default_factory=list)

    @property
    def users(self) -> list[User]:
        return [s.user for s in self.subscriptions]


class QuotaResetResult(BaseModel):
    """Result of the daily quota reset."""

    count: int
    reset_at: datetime


class SubscriptionReview(BaseModel):
    """Result of the admin "check subscriptions" pass."""

    check_only: bool
    before: dict[str, int]
    after: dict[str, int]
    downgraded: int
    expiring_soon: list[ExpiringSubscription] = Field(default_factory=list)


class MaintenanceReport(BaseModel):
    """Result of one daily maintenance run."""

    started_at: datetime
    finished_at: datetime
    quota_reset: QuotaResetResult
    expired: SweepResult
    expiring_soon: ExpiringSoonResult
