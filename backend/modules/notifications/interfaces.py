"""
Notification module interfaces.

The verification and subscription modules depend on INotificationDispatcher
only; channel transports are wired in by the service container.
"""

from typing import Protocol, Optional, Any, runtime_checkable

from modules.users.models import User

from .models import NotificationKind, NotificationResult, RenderedMessage, Severity


@runtime_checkable
class INotificationChannel(Protocol):
    """A single delivery transport (email, Telegram, ...)."""

    name: str

    async def send(self, recipient: str, message: RenderedMessage) -> Optional[str]:
        """
        Deliver a message.

        Args:
            recipient: Channel-specific address (email address, chat ID)
            message: Rendered message

        Returns:
            Provider message ID, if any

        Raises:
            NotificationDeliveryError: If delivery fails
        """
        ...


@runtime_checkable
class INotificationDispatcher(Protocol):
    """
    Contract for sending notifications.

    Implementations must not raise for delivery problems; they report
    them in the returned NotificationResult.
    """

    async def send_to_user(
        self,
        user: User,
        kind: NotificationKind,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        """
        Send a templated email to a user.

        Args:
            user: Recipient (email and username are used)
            kind: Which template to render
            data: Template variables (code, days_left, new_expiry, ...)
        """
        ...

    async def send_to_admin(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        """
        Send an operational alert to the administrators.

        Args:
            message: One-line summary
            severity: Importance level
            data: Extra details, rendered as JSON
        """
        ...

    async def send_test_notification(
        self,
        severity: Severity,
        message: str,
        admin: str,
    ) -> NotificationResult:
        """Send an admin-panel test message through the admin channels."""
        ...
