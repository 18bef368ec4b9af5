"""
Account flow data models.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from modules.users.models import User
from modules.verification.models import VerificationFailureReason


class AccountFailureReason(str, Enum):
    """
    Why an account action was refused.

    Includes every verification failure reason with the same value.
    """

    USER_NOT_FOUND = "user_not_found"
    ALREADY_VERIFIED = "already_verified"
    EMAIL_MISMATCH = "email_mismatch"
    NO_CODE_FOUND = VerificationFailureReason.NO_CODE_FOUND.value
    CODE_EXPIRED = VerificationFailureReason.CODE_EXPIRED.value
    INVALID_CODE = VerificationFailureReason.INVALID_CODE.value
    EMAIL_TAKEN = "email_taken"
    USERNAME_TAKEN = "username_taken"
    INVALID_ROLE = "invalid_role"
    ADMIN_PROTECTED = "admin_protected"

    @classmethod
    def from_verification(cls, reason: VerificationFailureReason) -> "AccountFailureReason":
        return cls(reason.value)


class AccountActionResult(BaseModel):
    """
    Result of an account action.

    ``user_found`` is only meaningful for password reset requests, where
    the HTTP layer must answer the same way whether or not the email
    belongs to an account.
    """

    ok: bool
    reason: Optional[AccountFailureReason] = None
    user_found: bool = True
    sent: Optional[bool] = None
    expires_at: Optional[datetime] = None
    email: Optional[str] = None
    user: Optional[User] = None

    @classmethod
    def failure(cls, reason: AccountFailureReason) -> "AccountActionResult":
        return cls(ok=False, reason=reason)


class UserPage(BaseModel):
    """One page of the admin user list."""

    users: list[User] = []
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0
