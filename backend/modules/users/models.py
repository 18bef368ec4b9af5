"""
User module data models.

The user record is owned by the user store. The lifecycle and account
modules read it and change it only through the store contract.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRole(str, Enum):
    """Access tiers."""

    FREE = "free"
    PRO = "pro"
    ADMIN = "admin"


class User(BaseModel):
    """A user record as seen by the account core."""

    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Display/login name")
    email: str = Field(..., description="Email address used for notifications")
    role: UserRole = Field(default=UserRole.FREE, description="Access tier")
    subscription_expires: Optional[datetime] = Field(
        None,
        description="Pro subscription expiry (None for non-subscribers)",
    )
    prompts_used_today: int = Field(default=0, ge=0, description="Prompts generated today")
    last_quota_reset: Optional[datetime] = Field(None, description="Last daily quota reset")
    email_verified: bool = Field(default=False, description="Whether the email was verified")
    created_at: Optional[datetime] = Field(None, description="Account creation time")

    @property
    def display_name(self) -> str:
        return self.username or "Pengguna"


class UserFilter(BaseModel):
    """
    Predicate for bulk user queries.

    All set fields are combined with AND. A user without a subscription
    expiry never matches an expiry condition.
    """

    user_id: Optional[str] = None
    role: Optional[UserRole] = None
    expires_before: Optional[datetime] = Field(
        None,
        description="subscription_expires < expires_before",
    )
    expires_from: Optional[datetime] = Field(
        None,
        description="subscription_expires >= expires_from",
    )
    expires_to: Optional[datetime] = Field(
        None,
        description="subscription_expires <= expires_to",
    )

    model_config = {"frozen": True}

    @property
    def has_expiry_condition(self) -> bool:
        return any(
            value is not None
            for value in (self.expires_before, self.expires_from, self.expires_to)
        )

    def matches(self, user: User) -> bool:
        """Evaluate the predicate against a single user."""
        if self.user_id is not None and user.id != self.user_id:
            return False
        if self.role is not None and user.role != self.role:
            return False

        if self.has_expiry_condition:
            if user.subscription_expires is None:
                return False
            expires = as_utc(user.subscription_expires)
            if self.expires_before is not None and not expires < as_utc(self.expires_before):
                return False
            if self.expires_from is not None and expires < as_utc(self.expires_from):
                return False
            if self.expires_to is not None and expires > as_utc(self.expires_to):
                return False

        return True
