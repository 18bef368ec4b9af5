"""
Admin endpoints.

User management, subscription management, on-demand sweeps and
notification tests. Every route requires an admin caller (role read from
the user store).
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, EmailStr, Field

from modules.accounts.models import AccountActionResult, AccountFailureReason
from modules.accounts.service import AccountService

from modules.notifications.interfaces import INotificationDispatcher
from modules.notifications.models import NotificationResult, Severity
from modules.subscriptions.interfaces import ISubscriptionService
from modules.subscriptions.models import (
    DurationUnit,
    SubscriptionFailureReason,
    SubscriptionReview,
)
from modules.users.interfaces import IUserStore
from modules.users.models import User, UserRole
from ..dependencies import (
    get_account_service,
    get_notifier,
    get_subscription_service,
    get_user_store,
)
from ..middleware.auth import require_admin
from ..models.errors import REFUSAL_RESPONSES

router = APIRouter(responses=REFUSAL_RESPONSES)

REASON_MESSAGES = {
    SubscriptionFailureReason.INVALID_DURATION: "Duration must be a positive number",
    SubscriptionFailureReason.INVALID_UNIT: "Invalid duration unit",
    SubscriptionFailureReason.INVALID_ROLE: "Role must be 'free' or 'pro'",
    SubscriptionFailureReason.ADMIN_ROLE_LOCKED: "Admin accounts cannot be changed",
}

ACCOUNT_REASON_MESSAGES = {
    AccountFailureReason.USER_NOT_FOUND: "User not found",
    AccountFailureReason.EMAIL_TAKEN: "Email is already registered",
    AccountFailureReason.USERNAME_TAKEN: "Username is already taken",
    AccountFailureReason.INVALID_ROLE: "Role must be 'free' or 'pro'",
    AccountFailureReason.ADMIN_PROTECTED: "Admin accounts cannot be changed here",
}


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=3)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: str = UserRole.FREE.value


class AdminPasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6)


class RoleUpdateRequest(BaseModel):
    role: str


class DurationRequest(BaseModel):
    amount: int = Field(..., description="Number of units to add")
    unit: str = Field(DurationUnit.MONTHLY.value, description="daily, monthly or yearly")


class SubscriptionCheckRequest(BaseModel):
    check_only: bool = False
    notify_days: int = Field(3, ge=0)


class TestNotificationRequest(BaseModel):
    severity: Severity = Severity.INFO
    message: str = "Test notification from admin panel"


class AdminUserResponse(BaseModel):
    id: str
    username: str
    email: str
    role: UserRole
    subscription_expires: Optional[datetime] = None
    prompts_used_today: int = 0
    email_verified: bool = False
    created_at: Optional[datetime] = None


class Pagination(BaseModel):
    total: int
    page: int
    pages: int


class UserListResponse(BaseModel):
    users: list[AdminUserResponse]
    pagination: Pagination


class UserActionResponse(BaseModel):
    message: str
    user: AdminUserResponse


class SubscriptionChangeResponse(BaseModel):
    message: str
    user: AdminUserResponse
    added_days: Optional[int] = None
    new_expiry: Optional[datetime] = None
    unlimited: bool = False
    email_sent: bool = False


class RoleChangeResponse(BaseModel):
    message: str
    user: AdminUserResponse
    previous_role: UserRole
    email_sent: bool = False


class QuotaResetResponse(BaseModel):
    message: str
    count: int


class NotificationTestResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    channels: dict[str, bool] = {}


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _load_user(users: IUserStore, user_id: str) -> User:
    user = users.find_by_id(user_id)
    if user is None:
        _reject_account(AccountFailureReason.USER_NOT_FOUND)
    return user


def _reject(reason: SubscriptionFailureReason) -> None:
    status_code = (
        status.HTTP_403_FORBIDDEN
        if reason == SubscriptionFailureReason.ADMIN_ROLE_LOCKED
        else status.HTTP_400_BAD_REQUEST
    )
    raise HTTPException(
        status_code=status_code,
        detail={"reason": reason.value, "message": REASON_MESSAGES[reason]},
    )


def _reject_account(reason: AccountFailureReason) -> None:
    status_code = {
        AccountFailureReason.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        AccountFailureReason.ADMIN_PROTECTED: status.HTTP_403_FORBIDDEN,
    }.get(reason, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(
        status_code=status_code,
        detail={"reason": reason.value, "message": ACCOUNT_REASON_MESSAGES[reason]},
    )


def _raise_for(result: AccountActionResult) -> None:
    if not result.ok:
        _reject_account(result.reason)


def _user_response(user: User) -> AdminUserResponse:
    return AdminUserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        subscription_expires=user.subscription_expires,
        prompts_used_today=user.prompts_used_today,
        email_verified=user.email_verified,
        created_at=user.created_at,
    )


def _sent(result: Optional[NotificationResult]) -> bool:
    return result is not None and result.success


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = Query(None, description="Username or email substring"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> UserListResponse:
    """List users, newest first."""
    result = accounts.list_users(search, page=page, limit=limit)
    return UserListResponse(
        users=[_user_response(u) for u in result.users],
        pagination=Pagination(total=result.total, page=result.page, pages=result.pages),
    )


@router.post(
    "/users",
    response_model=UserActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: CreateUserRequest,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> UserActionResponse:
    """Create a free or pro user (pro starts with 30 days)."""
    result = accounts.create_user(body.username, body.email, body.password, body.role)
    _raise_for(result)
    return UserActionResponse(message="User created", user=_user_response(result.user))


@router.delete("/users/{user_id}", response_model=UserActionResponse)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> UserActionResponse:
    """Delete a non-admin user."""
    result = accounts.delete_user(user_id)
    _raise_for(result)
    return UserActionResponse(message="User deleted", user=_user_response(result.user))


@router.post("/users/{user_id}/reset-password", response_model=UserActionResponse)
async def reset_user_password(
    user_id: str,
    body: AdminPasswordReset,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> UserActionResponse:
    """Set a user's password. Admins may only reset their own."""
    result = accounts.admin_reset_password(admin, user_id, body.new_password)
    _raise_for(result)
    return UserActionResponse(message="Password has been reset", user=_user_response(result.user))


@router.put("/users/{user_id}/role", response_model=RoleChangeResponse)
async def update_user_role(
    user_id: str,
    body: RoleUpdateRequest,
    admin: User = Depends(require_admin),
    users: IUserStore = Depends(get_user_store),
    subscriptions: ISubscriptionService = Depends(get_subscription_service),
) -> RoleChangeResponse:
    """Switch a user between free and pro."""
    user = _load_user(users, user_id)
    change = await subscriptions.change_role(user, body.role)
    if not change.ok:
        _reject(change.reason)

    return RoleChangeResponse(
        message=f"Role updated to {change.user.role.value}",
        user=_user_response(change.user),
        previous_role=change.previous_role,
        email_sent=_sent(change.notification),
    )


@router.post("/users/{user_id}/duration", response_model=SubscriptionChangeResponse)
async def add_user_duration(
    user_id: str,
    body: DurationRequest,
    admin: User = Depends(require_admin),
    users: IUserStore = Depends(get_user_store),
    subscriptions: ISubscriptionService = Depends(get_subscription_service),
) -> SubscriptionChangeResponse:
    """Extend a user's pro subscription."""
    user = _load_user(users, user_id)
    change = await subscriptions.extend_subscription(user, body.amount, body.unit)
    if not change.ok:
        _reject(change.reason)

    return SubscriptionChangeResponse(
        message=f"Subscription extended by {change.added_days} days",
        user=_user_response(change.user),
        added_days=change.added_days,
        new_expiry=change.new_expiry,
        email_sent=_sent(change.notification),
    )


@router.post("/users/{user_id}/unlimited", response_model=SubscriptionChangeResponse)
async def set_unlimited_subscription(
    user_id: str,
    admin: User = Depends(require_admin),
    users: IUserStore = Depends(get_user_store),
    subscriptions: ISubscriptionService = Depends(get_subscription_service),
) -> SubscriptionChangeResponse:
    """Give a user an unlimited pro subscription."""
    user = _load_user(users, user_id)
    change = await subscriptions.set_unlimited(user)
    if not change.ok:
        _reject(change.reason)

    return SubscriptionChangeResponse(
        message="Unlimited subscription activated",
        user=_user_response(change.user),
        new_expiry=change.new_expiry,
        unlimited=True,
        email_sent=_sent(change.notification),
    )


@router.post("/subscriptions/check", response_model=SubscriptionReview)
async def check_subscriptions(
    body: SubscriptionCheckRequest,
    admin: User = Depends(require_admin),
    subscriptions: ISubscriptionService = Depends(get_subscription_service),
) -> SubscriptionReview:
    """Notify expiring subscriptions and, unless check_only, downgrade expired ones."""
    return await subscriptions.review_subscriptions(
        check_only=body.check_only,
        notify_days=body.notify_days,
    )


@router.post("/quota/reset", response_model=QuotaResetResponse)
async def reset_quota(
    admin: User = Depends(require_admin),
    subscriptions: ISubscriptionService = Depends(get_subscription_service),
) -> QuotaResetResponse:
    """Reset the daily prompt counter of every free user now."""
    result = subscriptions.reset_daily_quota()
    return QuotaResetResponse(message="Daily quota reset", count=result.count)


@router.post("/notifications/test", response_model=NotificationTestResponse)
async def send_test_notification(
    body: TestNotificationRequest,
    admin: User = Depends(require_admin),
    notifier: INotificationDispatcher = Depends(get_notifier),
) -> NotificationTestResponse:
    """Send a test message through the admin notification channels."""
    result = await notifier.send_test_notification(body.severity, body.message, admin.email)
    return NotificationTestResponse(
        success=result.success,
        error=result.error,
        channels={name: r.success for name, r in result.channels.items()},
    )
