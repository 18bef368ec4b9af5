"""
Notification dispatcher implementation.

User notifications are rendered emails. Admin notifications are plain-text
alerts that are always logged and, when enabled, sent to Telegram and to
the admin mailbox.
"""

import json
import logging
from datetime import datetime, timezone
from html import escape
from typing import Optional, Any

from modules.users.models import User

from .channels import EmailChannel, TelegramChannel
from .exceptions import NotificationDeliveryError
from .interfaces import INotificationChannel
from .models import (
    ChannelResult,
    NotificationConfig,
    NotificationKind,
    NotificationResult,
    RenderedMessage,
    Severity,
)
from .templates import render

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Dispatches user and admin notifications over the configured channels.

    Channels are resolved once, in the constructor. A channel that is
    enabled but missing credentials is disabled with a warning.
    """

    def __init__(
        self,
        config: NotificationConfig,
        email_channel: Optional[INotificationChannel] = None,
        telegram_channel: Optional[INotificationChannel] = None,
    ):
        self._config = config
        self._email = email_channel if email_channel is not None else self._build_email(config)
        self._telegram = (
            telegram_channel if telegram_channel is not None else self._build_telegram(config)
        )

        logger.info(
            f"Notification service initialized. Environment: {config.environment}, "
            f"Enabled: {config.enabled}, Telegram: {self._telegram is not None}, "
            f"Email: {self._email is not None}"
        )

    @staticmethod
    def _build_email(config: NotificationConfig) -> Optional[INotificationChannel]:
        if not config.email_enabled:
            return None
        if not config.email_configured:
            logger.warning("Email notifications are enabled, but some configuration is missing")
            return None
        return EmailChannel(config)

    @staticmethod
    def _build_telegram(config: NotificationConfig) -> Optional[INotificationChannel]:
        if not config.telegram_enabled:
            return None
        if not config.telegram_configured:
            logger.warning("Telegram notifications are enabled, but token or chat ID is missing")
            return None
        return TelegramChannel(config)

    @property
    def config(self) -> NotificationConfig:
        return self._config

    async def _deliver(
        self,
        channel: INotificationChannel,
        recipient: str,
        message: RenderedMessage,
    ) -> ChannelResult:
        try:
            message_id = await channel.send(recipient, message)
        except NotificationDeliveryError as e:
            logger.error(f"Error sending {channel.name} notification to {recipient}: {e.message}")
            return ChannelResult(channel=channel.name, success=False, error=e.message)
        return ChannelResult(channel=channel.name, success=True, message_id=message_id)

    async def send_to_user(
        self,
        user: User,
        kind: NotificationKind,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        """Render and email a user notification."""
        if self._email is None:
            return NotificationResult.failed("Email notifications disabled")
        if not user.email:
            return NotificationResult.failed("No email address for user")

        message = render(kind, user, data or {}, app_name=self._config.app_name)
        result = await self._deliver(self._email, user.email, message)

        return NotificationResult(
            success=result.success,
            error=result.error,
            channels={result.channel: result},
        )

    @staticmethod
    def format_admin_message(
        message: str,
        severity: Severity,
        data: Optional[dict[str, Any]] = None,
    ) -> str:
        """Prefix the severity and append a JSON details block."""
        text = f"{Severity(severity).value.upper()}: {message or 'No message provided'}"
        if data:
            text += "\n\nDetails:\n" + json.dumps(data, indent=2, default=str)
        return text

    async def send_to_admin(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        """Log an admin alert and forward it to every enabled admin channel."""
        if not self._config.enabled:
            return NotificationResult.failed("Notifications disabled")

        detailed = self.format_admin_message(message, severity, data)
        logger.info(f"NOTIFICATION: {detailed}")

        rendered = RenderedMessage(
            subject=f"Notification - {Severity(severity).value.upper()}",
            text=detailed,
            html=f"<pre>{escape(detailed)}</pre>",
        )

        channels: dict[str, ChannelResult] = {}
        if self._telegram is not None:
            channels["telegram"] = await self._deliver(
                self._telegram, self._config.telegram_chat_id or "", rendered
            )
        if self._email is not None and self._config.email_user:
            channels["email"] = await self._deliver(
                self._email, self._config.email_user, rendered
            )

        errors = [f"{name}: {r.error}" for name, r in channels.items() if not r.success]
        return NotificationResult(
            success=not errors,
            error="; ".join(errors) or None,
            channels=channels,
        )

    async def send_test_notification(
        self,
        severity: Severity,
        message: str,
        admin: str,
    ) -> NotificationResult:
        """Send an admin-panel test notification through the admin channels."""
        return await self.send_to_admin(
            message,
            severity,
            {
                "source": "Admin Panel",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "admin": admin,
                "test": True,
            },
        )
