"""
Subscription module interface.

Route handlers and the scheduler depend on ISubscriptionService.
"""

from typing import Protocol, Union, runtime_checkable

from modules.users.models import User, UserRole

from .models import (
    DurationUnit,
    ExpiringSoonResult,
    QuotaDecision,
    QuotaResetResult,
    RoleChange,
    SubscriptionChange,
    SubscriptionReview,
    SweepResult,
)


@runtime_checkable
class ISubscriptionService(Protocol):
    """
    Interface for tier, quota and subscription lifecycle operations.
    """

    def check_quota(self, user: User) -> QuotaDecision:
        """
        Decide whether the user may generate another prompt today.

        Pro and admin users are never limited. Free users are limited to
        the configured daily limit.
        """
        ...

    def record_usage(self, user: User) -> int:
        """
        Count one generated prompt against a free user's daily quota.

        Returns:
            The user's counter after the call (unchanged for pro/admin)
        """
        ...

    async def extend_subscription(
        self,
        user: User,
        amount: int,
        unit: Union[DurationUnit, str],
    ) -> SubscriptionChange:
        """
        Add amount × unit days of pro access.

        Extends from the current expiry when it is still in the future,
        otherwise from now. Sets the role to pro.
        """
        ...

    async def set_unlimited(self, user: User) -> SubscriptionChange:
        """Give the user a pro subscription expiring 100 years from now."""
        ...

    def is_unlimited(self, user: User) -> bool:
        """Whether the user's expiry uses the far-future "unlimited" convention."""
        ...

    async def change_role(self, user: User, role: Union[UserRole, str]) -> RoleChange:
        """Switch a non-admin user between free and pro."""
        ...

    async def sweep_expired(self) -> SweepResult:
        """Downgrade every pro user whose subscription has expired."""
        ...

    async def sweep_soon_to_expire(self, days_threshold: int = 3) -> ExpiringSoonResult:
        """Notify pro users whose subscription ends within days_threshold days."""
        ...

    def reset_daily_quota(self) -> QuotaResetResult:
        """Zero the daily prompt counter of every free user."""
        ...

    async def review_subscriptions(
        self,
        check_only: bool = False,
        notify_days: int = 3,
    ) -> SubscriptionReview:
        """Run the expiring-soon pass and, unless check_only, the expiry sweep."""
        ...
