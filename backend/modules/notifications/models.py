"""
Notification module data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any

from pydantic import BaseModel, Field


class NotificationKind(str, Enum):
    """User-facing email templates."""

    VERIFICATION_CODE = "verification_code"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    SUBSCRIPTION_EXPIRING = "subscription_expiring"
    SUBSCRIPTION_EXTENDED = "subscription_extended"
    SUBSCRIPTION_UNLIMITED = "subscription_unlimited"
    ROLE_UPGRADED = "role_upgraded"


class Severity(str, Enum):
    """Importance of an admin notification."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class NotificationConfig(BaseModel):
    """
    Channel configuration for the notification dispatcher.

    Built once at startup and passed to the dispatcher constructor.
    """

    enabled: bool = Field(default=False, description="Admin notifications on/off")
    environment: str = Field(default="development")
    app_name: str = Field(default="Mbotix Prompt Generate")

    telegram_enabled: bool = False
    telegram_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    email_enabled: bool = False
    email_host: Optional[str] = None
    email_port: int = 587
    email_user: Optional[str] = None
    email_password: Optional[str] = None
    email_from: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_token and self.telegram_chat_id)

    @property
    def email_configured(self) -> bool:
        return bool(self.email_host and self.email_user and self.email_password)

    @property
    def sender_address(self) -> str:
        return self.email_from or f'"{self.app_name}" <{self.email_user}>'


class RenderedMessage(BaseModel):
    """A rendered email."""

    subject: str
    text: str
    html: Optional[str] = None

    model_config = {"frozen": True}


class ChannelResult(BaseModel):
    """Outcome of one delivery attempt on one channel."""

    channel: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class NotificationResult(BaseModel):
    """
    Outcome of a notification request.

    Notifications are best effort: callers inspect this result but never
    undo their own work because of it.
    """

    success: bool
    error: Optional[str] = None
    channels: dict[str, ChannelResult] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def failed(cls, error: str) -> "NotificationResult":
        return cls(success=False, error=error)


class SentNotification(BaseModel):
    """A notification captured by the recording dispatcher."""

    recipient: str
    kind: Optional[NotificationKind] = None
    severity: Optional[Severity] = None
    message: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)
