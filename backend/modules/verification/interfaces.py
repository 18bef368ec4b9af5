"""
Verification module interfaces.

ICodeStore is the keyed storage for pending codes. The default store is an
in-process dict; a shared store (e.g. Redis) can replace it as long as it
keeps one entry per key.
"""

from datetime import datetime
from typing import Protocol, Optional, runtime_checkable

from .models import ActionLike, IssuedCode, VerificationCode, VerificationResult


@runtime_checkable
class ICodeStore(Protocol):
    """Storage for pending verification codes."""

    def get(self, key: tuple[str, str]) -> Optional[VerificationCode]:
        """Return the code stored under key, or None."""
        ...

    def put(self, entry: VerificationCode) -> Optional[VerificationCode]:
        """Store a code under its key, returning the entry it replaced."""
        ...

    def delete(self, key: tuple[str, str]) -> bool:
        """Remove the code under key; returns whether one was present."""
        ...

    def schedule_expiry(self, entry: VerificationCode, delay_seconds: float) -> None:
        """Arrange for entry to be removed after delay_seconds, if still stored."""
        ...


@runtime_checkable
class IVerificationService(Protocol):
    """Contract of the verification code manager."""

    async def issue(
        self,
        user_id: str,
        email: str,
        action: ActionLike,
        display_name: Optional[str] = None,
    ) -> IssuedCode:
        """
        Create a code for (user_id, action), replacing any pending one,
        and send it to email.
        """
        ...

    def verify(
        self,
        user_id: str,
        submitted_code: str,
        action: ActionLike,
    ) -> VerificationResult:
        """Check and consume a code. Failures are returned, not raised."""
        ...

    def invalidate(self, user_id: str, action: ActionLike) -> bool:
        """Delete a pending code; returns whether one existed."""
        ...

    def pending_expiry(self, user_id: str, action: ActionLike) -> Optional[datetime]:
        """Expiry of the pending code for (user_id, action), if any."""
        ...
