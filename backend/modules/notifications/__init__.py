"""
Notifications module.

Sends templated user emails and admin alerts. Delivery is best effort:
failures come back as a NotificationResult, never as an exception.

Public API:
- INotificationDispatcher: Interface used by other modules
- NotificationDispatcher: Email + Telegram implementation
- RecordingDispatcher: In-memory implementation
- NotificationConfig, NotificationKind, Severity, NotificationResult
"""

from .interfaces import INotificationDispatcher, INotificationChannel
from .models import (
    ChannelResult,
    NotificationConfig,
    NotificationKind,
    NotificationResult,
    RenderedMessage,
    SentNotification,
    Severity,
)
from .exceptions import NotificationDeliveryError, ChannelNotConfiguredError
from .channels import EmailChannel, TelegramChannel
from .service import NotificationDispatcher
from .recording import RecordingDispatcher

__all__ = [
    # Interfaces
    "INotificationDispatcher",
    "INotificationChannel",
    # Models
    "ChannelResult",
    "NotificationConfig",
    "NotificationKind",
    "NotificationResult",
    "RenderedMessage",
    "SentNotification",
    "Severity",
    # Exceptions
    "NotificationDeliveryError",
    "ChannelNotConfiguredError",
    # Implementations
    "EmailChannel",
    "TelegramChannel",
    "NotificationDispatcher",
    "RecordingDispatcher",
]
