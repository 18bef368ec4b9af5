"""
In-process verification code store.

Codes live in a dict for the life of the process; a restart drops them and
users request a new one. Each entry gets an eager expiry timer on the
running event loop. The timer only removes the exact entry it was
scheduled for, so a replacement code is never deleted early.
"""

import asyncio
import logging
import threading
from typing import Optional

from .models import VerificationCode

logger = logging.getLogger(__name__)


class InMemoryCodeStore:
    """Thread-safe dict of pending codes keyed by (user_id, action)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._codes: dict[tuple[str, str], VerificationCode] = {}
        self._timers: dict[tuple[str, str], asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)

    def get(self, key: tuple[str, str]) -> Optional[VerificationCode]:
        with self._lock:
            return self._codes.get(key)

    def put(self, entry: VerificationCode) -> Optional[VerificationCode]:
        with self._lock:
            previous = self._codes.get(entry.key)
            self._codes[entry.key] = entry
            self._cancel_timer(entry.key)
            return previous

    def delete(self, key: tuple[str, str]) -> bool:
        with self._lock:
            self._cancel_timer(key)
            return self._codes.pop(key, None) is not None

    def schedule_expiry(self, entry: VerificationCode, delay_seconds: float) -> None:
        """
        Remove entry after delay_seconds.

        Without a running event loop no timer is set; the expiry check at
        verify time still applies.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        handle = loop.call_later(max(delay_seconds, 0), self._expire, entry)
        with self._lock:
            if self._codes.get(entry.key) is entry:
                self._cancel_timer(entry.key)
                self._timers[entry.key] = handle
            else:
                handle.cancel()

    def _expire(self, entry: VerificationCode) -> None:
        with self._lock:
            if self._codes.get(entry.key) is not entry:
                return
            del self._codes[entry.key]
            self._timers.pop(entry.key, None)
        logger.debug(f"Verification code for {entry.user_id}:{entry.action} expired and removed")

    def _cancel_timer(self, key: tuple[str, str]) -> None:
        # Caller holds the lock
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def clear(self) -> None:
        with self._lock:
            for handle in self._timers.values():
                handle.cancel()
            self._timers.clear()
            self._codes.clear()
