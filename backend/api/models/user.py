"""
Token models for authentication.

The authenticated identity itself is shared.models.AuthenticatedUser.
"""

from pydantic import BaseModel
from typing import Optional

from shared.models import AuthenticatedUser


class TokenPayload(BaseModel):
    """JWT token payload structure."""
    sub: str  # User ID
    email: str
    email_confirmed_at: Optional[str] = None
    aud: str  # Audience
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp


__all__ = ["AuthenticatedUser", "TokenPayload"]
