"""
In-memory notification dispatcher.

Records every request instead of delivering it. Tests inject it wherever a
service takes an INotificationDispatcher.
"""

from typing import Optional, Any

from modules.users.models import User

from .models import (
    NotificationKind,
    NotificationResult,
    SentNotification,
    Severity,
)


class RecordingDispatcher:
    """
    Dispatcher that keeps sent notifications in lists.

    Args:
        succeed: Result reported for every send
        raise_error: If set, every send raises this exception
            (simulates a broken dispatcher)
    """

    def __init__(self, succeed: bool = True, raise_error: Optional[Exception] = None):
        self.succeed = succeed
        self.raise_error = raise_error
        self.user_notifications: list[SentNotification] = []
        self.admin_notifications: list[SentNotification] = []

    def _result(self) -> NotificationResult:
        if self.raise_error is not None:
            raise self.raise_error
        if self.succeed:
            return NotificationResult(success=True)
        return NotificationResult.failed("Delivery disabled")

    async def send_to_user(
        self,
        user: User,
        kind: NotificationKind,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        self.user_notifications.append(
            SentNotification(recipient=user.email, kind=kind, data=data or {})
        )
        return self._result()

    async def send_to_admin(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        self.admin_notifications.append(
            SentNotification(recipient="admin", severity=severity, message=message, data=data or {})
        )
        return self._result()

    async def send_test_notification(
        self,
        severity: Severity,
        message: str,
        admin: str,
    ) -> NotificationResult:
        return await self.send_to_admin(message, severity, {"admin": admin, "test": True})

    def sent_to(self, email: str) -> list[SentNotification]:
        """All user notifications addressed to an email."""
        return [n for n in self.user_notifications if n.recipient == email]

    def clear(self) -> None:
        self.user_notifications.clear()
        self.admin_notifications.clear()
