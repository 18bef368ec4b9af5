"""
Notification delivery channels.

EmailChannel sends over SMTP, TelegramChannel posts to the Bot API.
Both raise NotificationDeliveryError on failure.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

import httpx

from .exceptions import ChannelNotConfiguredError, NotificationDeliveryError
from .models import NotificationConfig, RenderedMessage

logger = logging.getLogger(__name__)


class EmailChannel:
    """SMTP email delivery (STARTTLS, or implicit TLS on port 465)."""

    name = "email"

    def __init__(self, config: NotificationConfig, timeout: float = 15.0):
        if not config.email_configured:
            raise ChannelNotConfiguredError(self.name)
        self._config = config
        self._timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        host = self._config.email_host
        port = self._config.email_port
        if port == 465:
            conn: smtplib.SMTP = smtplib.SMTP_SSL(host, port, timeout=self._timeout)
        else:
            conn = smtplib.SMTP(host, port, timeout=self._timeout)
            conn.ehlo()
            conn.starttls()
            conn.ehlo()
        conn.login(self._config.email_user, self._config.email_password)
        return conn

    def _build(self, recipient: str, message: RenderedMessage) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = self._config.sender_address
        msg["To"] = recipient
        msg["Message-ID"] = make_msgid()
        msg.attach(MIMEText(message.text, "plain", "utf-8"))
        if message.html:
            msg.attach(MIMEText(message.html, "html", "utf-8"))
        return msg

    def _send_sync(self, recipient: str, message: RenderedMessage) -> str:
        msg = self._build(recipient, message)
        with self._connect() as conn:
            conn.sendmail(self._config.email_user, [recipient], msg.as_string())
        return msg["Message-ID"]

    async def send(self, recipient: str, message: RenderedMessage) -> Optional[str]:
        try:
            message_id = await asyncio.to_thread(self._send_sync, recipient, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryError(self.name, str(e))

        logger.info(f"Sent email '{message.subject}' to {recipient}")
        return message_id


class TelegramChannel:
    """Telegram Bot API delivery (plain text, no parse mode)."""

    name = "telegram"

    API_URL = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(
        self,
        config: NotificationConfig,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        if not config.telegram_configured:
            raise ChannelNotConfiguredError(self.name)
        self._config = config
        self._client = client
        self._timeout = timeout

    @property
    def default_chat_id(self) -> str:
        return self._config.telegram_chat_id or ""

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        response = await client.post(
            self.API_URL.format(token=self._config.telegram_token),
            json=payload,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response

    async def send(self, recipient: str, message: RenderedMessage) -> Optional[str]:
        payload = {
            "chat_id": recipient or self.default_chat_id,
            "text": message.text,
        }
        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(self.name, str(e))

        result = response.json().get("result") or {}
        message_id = result.get("message_id")
        return str(message_id) if message_id is not None else None
