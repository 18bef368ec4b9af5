"""
Verification module data models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class VerificationAction(str, Enum):
    """Built-in purposes a code can be issued for."""

    EMAIL_VERIFY = "email-verify"
    PASSWORD_RESET = "password-reset"


# Any other string is accepted as a custom action.
ActionLike = Union[VerificationAction, str]


def action_value(action: ActionLike) -> str:
    """Normalize an action to its string tag."""
    if isinstance(action, VerificationAction):
        return action.value
    return str(action)


class VerificationFailureReason(str, Enum):
    """
    Why a verification attempt failed.

    Values are stable so callers can map them to user-facing messages.
    """

    NO_CODE_FOUND = "no_code_found"
    CODE_EXPIRED = "code_expired"
    INVALID_CODE = "invalid_code"


class VerificationCode(BaseModel):
    """A pending code, keyed by (user_id, action)."""

    user_id: str
    action: str
    code: str = Field(..., min_length=6, max_length=6)
    email: str = Field(..., description="Address the code was sent to")
    issued_at: datetime
    expires_at: datetime

    model_config = {"frozen": True}

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.action)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class IssuedCode(BaseModel):
    """
    Result of issuing a code.

    The code is always stored; ``sent`` reports whether delivery worked.
    """

    code: str
    expires_at: datetime
    sent: bool
    send_error: Optional[str] = None


class VerificationResult(BaseModel):
    """Result of checking a submitted code."""

    valid: bool
    reason: Optional[VerificationFailureReason] = None
    user_id: Optional[str] = None
    email: Optional[str] = Field(None, description="Email snapshot from issuance")
    action: Optional[str] = None

    @classmethod
    def failure(cls, reason: VerificationFailureReason) -> "VerificationResult":
        return cls(valid=False, reason=reason)
