"""
User-related endpoints.

Profile, tier and daily quota of the current user.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from modules.subscriptions.interfaces import ISubscriptionService
from modules.subscriptions.models import QuotaDecision
from modules.users.models import User, UserRole
from ..dependencies import get_subscription_service
from ..middleware.auth import get_current_profile

router = APIRouter()


class QuotaResponse(BaseModel):
    """Daily prompt quota."""

    allowed: bool
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None


class UserProfileResponse(BaseModel):
    """User profile response model."""

    id: str
    username: str
    email: str
    email_verified: bool
    role: UserRole
    subscription_expires: Optional[datetime] = None
    unlimited: bool
    quota: QuotaResponse


def _quota(decision: QuotaDecision) -> QuotaResponse:
    return QuotaResponse(
        allowed=decision.allowed,
        used=decision.used,
        limit=decision.limit,
        remaining=decision.remaining,
    )


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    user: User = Depends(get_current_profile),
    subscriptions: ISubscriptionService = Depends(get_subscription_service),
) -> UserProfileResponse:
    """
    Get the current user's profile with tier and quota.

    Requires authentication.
    """
    return UserProfileResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        email_verified=user.email_verified,
        role=user.role,
        subscription_expires=user.subscription_expires,
        unlimited=subscriptions.is_unlimited(user),
        quota=_quota(subscriptions.check_quota(user)),
    )


@router.post("/me/usage", response_model=QuotaResponse)
async def record_prompt_usage(
    user: User = Depends(get_current_profile),
    subscriptions: ISubscriptionService = Depends(get_subscription_service),
) -> QuotaResponse:
    """
    Count one generated prompt against the caller's daily quota.

    Returns 429 when a free user has no prompts left today.
    """
    decision = subscriptions.check_quota(user)
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "reason": "quota_exceeded",
                "message": f"Daily limit of {decision.limit} prompts reached",
            },
        )

    used = subscriptions.record_usage(user)
    return _quota(subscriptions.check_quota(user.model_copy(update={"prompts_used_today": used})))
