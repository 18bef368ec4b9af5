"""
Subscription lifecycle service.

Owns the tier rules: the free daily prompt quota, paid extensions, the
"unlimited" convention and the periodic sweeps that downgrade expired
subscriptions. Notifications are best effort and never roll back a
change that was already written to the user store.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union, Any

from dateutil.relativedelta import relativedelta

from modules.notifications.interfaces import INotificationDispatcher
from modules.notifications.models import NotificationKind, NotificationResult, Severity
from modules.users.interfaces import IUserStore
from modules.users.exceptions import UserNotFoundError
from modules.users.models import User, UserFilter, UserRole, as_utc

from .models import (
    UNIT_DAYS,
    DurationUnit,
    ExpiringSoonResult,
    ExpiringSubscription,
    NotificationFailure,
    QuotaDecision,
    QuotaResetResult,
    RoleChange,
    SubscriptionChange,
    SubscriptionFailureReason,
    SubscriptionReview,
    SweepResult,
)

logger = logging.getLogger(__name__)

FREE_DAILY_PROMPT_LIMIT = 2

# "Unlimited" is stored as an expiry this far in the future...
UNLIMITED_TERM = relativedelta(years=100)
# ...and recognised by anything beyond this horizon.
UNLIMITED_HORIZON = relativedelta(years=50)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


class SubscriptionService:
    """
    Tier, quota and subscription lifecycle rules.

    Args:
        users: User store
        notifier: Notification dispatcher
        daily_limit: Prompts a free user may generate per day
        clock: Returns the current UTC time (injected for tests)
    """

    def __init__(
        self,
        users: IUserStore,
        notifier: INotificationDispatcher,
        daily_limit: int = FREE_DAILY_PROMPT_LIMIT,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._users = users
        self._notifier = notifier
        self._daily_limit = daily_limit
        self._clock = clock

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    # -------------------------------------------------------------------------
    # Quota
    # -------------------------------------------------------------------------

    def check_quota(self, user: User) -> QuotaDecision:
        if user.role != UserRole.FREE:
            return QuotaDecision(allowed=True, role=user.role, used=user.prompts_used_today)

        used = user.prompts_used_today
        remaining = max(self._daily_limit - used, 0)
        return QuotaDecision(
            allowed=used < self._daily_limit,
            role=user.role,
            used=used,
            limit=self._daily_limit,
            remaining=remaining,
        )

    def record_usage(self, user: User) -> int:
        if user.role != UserRole.FREE:
            return user.prompts_used_today
        return self._users.increment_prompts_used(user.id)

    # -------------------------------------------------------------------------
    # Extensions and role changes
    # -------------------------------------------------------------------------

    async def extend_subscription(
        self,
        user: User,
        amount: int,
        unit: Union[DurationUnit, str],
    ) -> SubscriptionChange:
        try:
            unit = DurationUnit(unit)
        except ValueError:
            return SubscriptionChange.rejected(SubscriptionFailureReason.INVALID_UNIT)

        days = amount * UNIT_DAYS[unit]
        if days <= 0:
            return SubscriptionChange.rejected(SubscriptionFailureReason.INVALID_DURATION)
        if user.role == UserRole.ADMIN:
            return SubscriptionChange.rejected(SubscriptionFailureReason.ADMIN_ROLE_LOCKED)

        now = self._clock()
        current = user.subscription_expires
        base = as_utc(current) if current and as_utc(current) > now else now
        new_expiry = base + timedelta(days=days)

        updated = self._update(user, {"role": UserRole.PRO, "subscription_expires": new_expiry})
        logger.info(f"Extended subscription for {user.email} by {days} days until {new_expiry}")

        notification = await self._notify_user(
            updated,
            NotificationKind.SUBSCRIPTION_EXTENDED,
            {"added_days": days, "new_expiry": new_expiry},
        )
        return SubscriptionChange(
            ok=True,
            user=updated,
            added_days=days,
            new_expiry=new_expiry,
            notification=notification,
        )

    async def set_unlimited(self, user: User) -> SubscriptionChange:
        if user.role == UserRole.ADMIN:
            return SubscriptionChange.rejected(SubscriptionFailureReason.ADMIN_ROLE_LOCKED)

        new_expiry = self._clock() + UNLIMITED_TERM
        updated = self._update(user, {"role": UserRole.PRO, "subscription_expires": new_expiry})
        logger.info(f"Set unlimited subscription for {user.email}")

        notification = await self._notify_user(updated, NotificationKind.SUBSCRIPTION_UNLIMITED)
        return SubscriptionChange(
            ok=True,
            user=updated,
            new_expiry=new_expiry,
            unlimited=True,
            notification=notification,
        )

    def is_unlimited(self, user: User) -> bool:
        if user.subscription_expires is None:
            return False
        return as_utc(user.subscription_expires) > self._clock() + UNLIMITED_HORIZON

    async def change_role(self, user: User, role: Union[UserRole, str]) -> RoleChange:
        try:
            role = UserRole(role)
        except ValueError:
            return RoleChange(ok=False, reason=SubscriptionFailureReason.INVALID_ROLE)
        if role == UserRole.ADMIN:
            return RoleChange(ok=False, reason=SubscriptionFailureReason.INVALID_ROLE)
        if user.role == UserRole.ADMIN:
            return RoleChange(ok=False, reason=SubscriptionFailureReason.ADMIN_ROLE_LOCKED)

        updated = self._update(user, {"role": role})
        logger.info(f"Changed role for {user.email}: {user.role.value} -> {role.value}")

        notification = None
        if role == UserRole.PRO:
            notification = await self._notify_user(updated, NotificationKind.ROLE_UPGRADED)

        return RoleChange(
            ok=True,
            user=updated,
            previous_role=user.role,
            notification=notification,
        )

    # -------------------------------------------------------------------------
    # Sweeps
    # -------------------------------------------------------------------------

    async def sweep_expired(self) -> SweepResult:
        now = self._clock()
        criteria = UserFilter(role=UserRole.PRO, expires_before=now)

        expired = self._users.find_many(criteria)
        if not expired:
            logger.info("No expired subscriptions found")
            return SweepResult(swept_at=now)

        logger.info(f"Found {len(expired)} expired subscriptions")
        for user in expired:
            logger.info(f"- User: {user.email} (expired: {user.subscription_expires})")

        # Downgrade before notifying.
        count = self._users.update_many(
            criteria,
            {"role": UserRole.FREE, "subscription_expires": None},
        )
        logger.info(f"Downgraded {count} users from pro to free")

        failures: list[NotificationFailure] = []
        admin_result = await self._notify_admin(
            f"{count} user {_plural(count, 'subscription')} expired and "
            f"{'was' if count == 1 else 'were'} downgraded from Pro to Free",
            Severity.WARNING,
            {
                "users": [
                    {
                        "username": u.username,
                        "email": u.email,
                        "expired": u.subscription_expires,
                    }
                    for u in expired
                ]
            },
        )
        if not admin_result.success:
            failures.append(NotificationFailure(recipient="admin", error=admin_result.error))

        for user in expired:
            result = await self._notify_user(user, NotificationKind.SUBSCRIPTION_EXPIRED)
            if not result.success:
                failures.append(NotificationFailure(recipient=user.email, error=result.error))

        return SweepResult(
            downgraded_count=count,
            downgraded_users=expired,
            notification_failures=failures,
            swept_at=now,
        )

    async def sweep_soon_to_expire(self, days_threshold: int = 3) -> ExpiringSoonResult:
        now = self._clock()
        criteria = UserFilter(
            role=UserRole.PRO,
            expires_from=now,
            expires_to=now + timedelta(days=days_threshold),
        )

        expiring = self._users.find_many(criteria)
        if not expiring:
            logger.info(f"No subscriptions expiring within {days_threshold} days")
            return ExpiringSoonResult(days_threshold=days_threshold)

        logger.info(f"Found {len(expiring)} subscriptions expiring within {days_threshold} days")

        subscriptions = [
            ExpiringSubscription(user=u, days_left=self._days_left(u, now)) for u in expiring
        ]

        failures: list[NotificationFailure] = []
        admin_result = await self._notify_admin(
            f"{len(expiring)} user {_plural(len(expiring), 'subscription')} "
            f"will expire within {days_threshold} days",
            Severity.INFO,
            {
                "users": [
                    {
                        "username": s.user.username,
                        "email": s.user.email,
                        "expires": s.user.subscription_expires,
                        "days_left": s.days_left,
                    }
                    for s in subscriptions
                ]
            },
        )
        if not admin_result.success:
            failures.append(NotificationFailure(recipient="admin", error=admin_result.error))

        for sub in subscriptions:
            result = await self._notify_user(
                sub.user,
                NotificationKind.SUBSCRIPTION_EXPIRING,
                {"days_left": sub.days_left, "expires_at": sub.user.subscription_expires},
            )
            if not result.success:
                failures.append(NotificationFailure(recipient=sub.user.email, error=result.error))

        return ExpiringSoonResult(
            days_threshold=days_threshold,
            subscriptions=subscriptions,
            notification_failures=failures,
        )

    @staticmethod
    def _days_left(user: User, now: datetime) -> int:
        remaining = as_utc(user.subscription_expires) - now
        return math.ceil(remaining.total_seconds() / 86400)

    def reset_daily_quota(self) -> QuotaResetResult:
        now = self._clock()
        count = self._users.update_many(
            UserFilter(role=UserRole.FREE),
            {"prompts_used_today": 0, "last_quota_reset": now},
        )
        logger.info(f"Reset daily quota for {count} free users")
        return QuotaResetResult(count=count, reset_at=now)

    async def review_subscriptions(
        self,
        check_only: bool = False,
        notify_days: int = 3,
    ) -> SubscriptionReview:
        before = self._users.count_by_role()

        expiring = await self.sweep_soon_to_expire(notify_days)

        downgraded = 0
        if not check_only:
            sweep = await self.sweep_expired()
            downgraded = sweep.downgraded_count

        after = self._users.count_by_role()
        logger.info(f"Subscription check complete. Before: {before}, after: {after}")

        return SubscriptionReview(
            check_only=check_only,
            before=before,
            after=after,
            downgraded=downgraded,
            expiring_soon=expiring.subscriptions,
        )

    def _update(self, user: User, patch: dict[str, Any]) -> User:
        """Write only the patched fields and return the stored record."""
        if not self._users.update_many(UserFilter(user_id=user.id), patch):
            raise UserNotFoundError(user.id)
        updated = self._users.find_by_id(user.id)
        if updated is None:
            raise UserNotFoundError(user.id)
        return updated

    # -------------------------------------------------------------------------
    # Notification helpers
    # -------------------------------------------------------------------------

    async def _notify_user(
        self,
        user: User,
        kind: NotificationKind,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        try:
            result = await self._notifier.send_to_user(user, kind, data)
        except Exception as e:
            logger.exception(f"Error sending {kind.value} email to {user.email}")
            return NotificationResult.failed(str(e) or e.__class__.__name__)

        logger.info(
            f"{kind.value} email to {user.email}: {'sent' if result.success else 'failed'}"
        )
        return result

    async def _notify_admin(
        self,
        message: str,
        severity: Severity,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        try:
            return await self._notifier.send_to_admin(message, severity, data)
        except Exception as e:
            logger.exception("Error sending admin notification")
            return NotificationResult.failed(str(e) or e.__class__.__name__)
