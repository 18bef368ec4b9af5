"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations from shared settings.
"""

from datetime import timedelta
from typing import TYPE_CHECKING

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.accounts.service import AccountService
    from modules.notifications.interfaces import INotificationDispatcher
    from modules.subscriptions.interfaces import ISubscriptionService
    from modules.subscriptions.scheduler import DailyScheduler
    from modules.users.interfaces import IUserStore
    from modules.verification.interfaces import IVerificationService


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Use reset() to clear them for testing.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings
        self._user_store: "IUserStore | None" = None
        self._notifier: "INotificationDispatcher | None" = None
        self._verification: "IVerificationService | None" = None
        self._subscriptions: "ISubscriptionService | None" = None
        self._accounts: "AccountService | None" = None
        self._scheduler: "DailyScheduler | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def users(self) -> "IUserStore":
        """Get the user store ("memory" or "supabase" backend)."""
        if self._user_store is None:
            if self.settings.user_store_backend == "memory":
                from modules.users.repository import InMemoryUserStore
                self._user_store = InMemoryUserStore()
            else:
                from modules.users.repository import SupabaseUserRepository
                from shared.database import get_supabase_client
                self._user_store = SupabaseUserRepository(get_supabase_client())
        return self._user_store

    @property
    def notifier(self) -> "INotificationDispatcher":
        """Get the notification dispatcher."""
        if self._notifier is None:
            from modules.notifications.service import NotificationDispatcher
            self._notifier = NotificationDispatcher(self.settings.notification_config())
        return self._notifier

    @property
    def verification(self) -> "IVerificationService":
        """Get the verification code service."""
        if self._verification is None:
            from modules.verification.service import VerificationService
            self._verification = VerificationService(
                self.notifier,
                ttl=timedelta(minutes=self.settings.verification_code_ttl_minutes),
            )
        return self._verification

    @property
    def subscriptions(self) -> "ISubscriptionService":
        """Get the subscription lifecycle service."""
        if self._subscriptions is None:
            from modules.subscriptions.service import SubscriptionService
            self._subscriptions = SubscriptionService(
                self.users,
                self.notifier,
                daily_limit=self.settings.free_daily_prompt_limit,
            )
        return self._subscriptions

    @property
    def accounts(self) -> "AccountService":
        """Get the account flow service."""
        if self._accounts is None:
            from modules.accounts.service import AccountService
            self._accounts = AccountService(self.users, self.verification)
        return self._accounts

    @property
    def scheduler(self) -> "DailyScheduler":
        """Get the daily maintenance scheduler (not started)."""
        if self._scheduler is None:
            from modules.subscriptions.scheduler import DailyScheduler
            self._scheduler = DailyScheduler.from_settings(self.subscriptions, self.settings)
        return self._scheduler

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._user_store = None
        self._notifier = None
        self._verification = None
        self._subscriptions = None
        self._accounts = None
        self._scheduler = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container with new
    service instances. Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_user_store() -> "IUserStore":
    """FastAPI dependency for the user store."""
    return get_container().users


def get_notifier() -> "INotificationDispatcher":
    """FastAPI dependency for the notification dispatcher."""
    return get_container().notifier


def get_verification_service() -> "IVerificationService":
    """FastAPI dependency for the verification code service."""
    return get_container().verification


def get_subscription_service() -> "ISubscriptionService":
    """FastAPI dependency for the subscription service."""
    return get_container().subscriptions


def get_account_service() -> "AccountService":
    """FastAPI dependency for account flows."""
    return get_container().accounts
