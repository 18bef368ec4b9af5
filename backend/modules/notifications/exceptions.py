"""
Notification module exceptions.

Channels raise these; the dispatcher catches them and reports a failed
NotificationResult instead of propagating.
"""

from shared.exceptions import ExternalServiceError


class NotificationDeliveryError(ExternalServiceError):
    """Raised when a channel fails to deliver a message."""

    def __init__(self, channel: str, message: str):
        super().__init__(
            f"Failed to deliver {channel} notification: {message}",
            service=channel,
            code="NOTIFICATION_DELIVERY_FAILED",
            details={"error": message},
        )


class ChannelNotConfiguredError(ExternalServiceError):
    """Raised when a channel is used without the credentials it needs."""

    def __init__(self, channel: str):
        super().__init__(
            f"{channel} channel is not configured",
            service=channel,
            code="CHANNEL_NOT_CONFIGURED",
        )
