"""
Verification code service.

Issues and checks single-use, time-limited numeric codes that gate account
actions (email verification, password reset). Codes are scoped per action,
so a pending password-reset code can never satisfy an email check.
"""

import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from modules.notifications.interfaces import INotificationDispatcher
from modules.notifications.models import NotificationKind
from modules.users.models import User

from .interfaces import ICodeStore
from .models import (
    ActionLike,
    IssuedCode,
    VerificationCode,
    VerificationFailureReason,
    VerificationResult,
    action_value,
)
from .store import InMemoryCodeStore

logger = logging.getLogger(__name__)

CODE_TTL = timedelta(minutes=10)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_code() -> str:
    """Return a uniformly random 6-digit code in [100000, 999999]."""
    return str(100_000 + secrets.randbelow(900_000))


class VerificationService:
    """
    Verification code manager.

    The expiry check in verify() is authoritative; the store's eager
    timers only keep memory tidy.
    """

    def __init__(
        self,
        notifier: INotificationDispatcher,
        store: Optional[ICodeStore] = None,
        ttl: timedelta = CODE_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._notifier = notifier
        self._store = store if store is not None else InMemoryCodeStore()
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def issue(
        self,
        user_id: str,
        email: str,
        action: ActionLike,
        display_name: Optional[str] = None,
    ) -> IssuedCode:
        """
        Create and send a code for (user_id, action).

        Any pending code for the same key is replaced. The new code is
        stored before sending, and stays stored if sending fails.
        """
        now = self._clock()
        entry = VerificationCode(
            user_id=user_id,
            action=action_value(action),
            code=generate_code(),
            email=email,
            issued_at=now,
            expires_at=now + self._ttl,
        )
        self._store.put(entry)
        self._store.schedule_expiry(entry, self._ttl.total_seconds())

        sent, error = await self._send(entry, display_name)
        return IssuedCode(
            code=entry.code,
            expires_at=entry.expires_at,
            sent=sent,
            send_error=error,
        )

    async def _send(
        self,
        entry: VerificationCode,
        display_name: Optional[str],
    ) -> tuple[bool, Optional[str]]:
        recipient = User(id=entry.user_id, username=display_name or "", email=entry.email)
        try:
            result = await self._notifier.send_to_user(
                recipient,
                NotificationKind.VERIFICATION_CODE,
                {
                    "code": entry.code,
                    "action": entry.action,
                    "display_name": display_name,
                    "expires_at": entry.expires_at,
                },
            )
        except Exception as e:
            logger.exception(f"Error sending verification code to {entry.email}")
            return False, str(e) or e.__class__.__name__

        if not result.success:
            logger.error(
                f"Failed to send verification code to {entry.email}: "
                f"{result.error or 'Unknown error'}"
            )
            return False, result.error or "Failed to send verification email"

        logger.info(f"Verification code sent to {entry.email} for {entry.action}")
        return True, None

    def verify(
        self,
        user_id: str,
        submitted_code: str,
        action: ActionLike,
    ) -> VerificationResult:
        """
        Check a submitted code and consume it on success.

        The lookup, expiry check, comparison and delete happen under one
        lock, so only one of several concurrent attempts can succeed.
        """
        key = (user_id, action_value(action))

        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return VerificationResult.failure(VerificationFailureReason.NO_CODE_FOUND)

            if entry.is_expired(self._clock()):
                self._store.delete(key)
                return VerificationResult.failure(VerificationFailureReason.CODE_EXPIRED)

            if entry.code != submitted_code:
                return VerificationResult.failure(VerificationFailureReason.INVALID_CODE)

            self._store.delete(key)

        return VerificationResult(
            valid=True,
            user_id=entry.user_id,
            email=entry.email,
            action=entry.action,
        )

    def invalidate(self, user_id: str, action: ActionLike) -> bool:
        """Delete the pending code for (user_id, action)."""
        with self._lock:
            deleted = self._store.delete((user_id, action_value(action)))
        if deleted:
            logger.info(f"Invalidated verification code for {user_id}:{action_value(action)}")
        return deleted

    def pending_expiry(self, user_id: str, action: ActionLike) -> Optional[datetime]:
        """Expiry of the live code for (user_id, action), or None."""
        entry = self._store.get((user_id, action_value(action)))
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry.expires_at
