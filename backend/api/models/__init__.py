"""API models package."""

from .user import AuthenticatedUser, TokenPayload
from .errors import ErrorResponse, ReasonDetail, RefusalResponse, REFUSAL_RESPONSES

__all__ = [
    "AuthenticatedUser",
    "TokenPayload",
    "ErrorResponse",
    "ReasonDetail",
    "RefusalResponse",
    "REFUSAL_RESPONSES",
]
