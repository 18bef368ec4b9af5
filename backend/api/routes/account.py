"""
Account endpoints: email verification and password reset.

Refused actions return 400 with a stable ``reason``; a missing user
returns 404. Password reset requests answer the same way whether or not
the email belongs to an account.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from modules.accounts.models import AccountActionResult, AccountFailureReason
from modules.accounts.service import AccountService
from modules.users.interfaces import IUserStore
from shared.models import AuthenticatedUser
from ..dependencies import get_account_service, get_user_store
from ..middleware.auth import get_current_user
from ..models.errors import REFUSAL_RESPONSES

router = APIRouter(responses=REFUSAL_RESPONSES)

REASON_MESSAGES = {
    AccountFailureReason.USER_NOT_FOUND: "User not found",
    AccountFailureReason.ALREADY_VERIFIED: "Email is already verified",
    AccountFailureReason.EMAIL_MISMATCH: "Email changed since the code was sent",
    AccountFailureReason.NO_CODE_FOUND: "No verification code found, request a new one",
    AccountFailureReason.CODE_EXPIRED: "Verification code has expired",
    AccountFailureReason.INVALID_CODE: "Invalid verification code",
}

RESET_REQUESTED_MESSAGE = "If the email is registered, a verification code has been sent"


class CodeSentResponse(BaseModel):
    message: str
    expires_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str


class VerifyEmailRequest(BaseModel):
    code: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


def _raise_for(result: AccountActionResult) -> None:
    """Translate a refused account action into an HTTP error."""
    if result.ok:
        return
    reason = result.reason
    status_code = (
        status.HTTP_404_NOT_FOUND
        if reason == AccountFailureReason.USER_NOT_FOUND
        else status.HTTP_400_BAD_REQUEST
    )
    raise HTTPException(
        status_code=status_code,
        detail={"reason": reason.value, "message": REASON_MESSAGES[reason]},
    )


def _raise_if_not_sent(result: AccountActionResult) -> None:
    if result.sent is False:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"reason": "send_failed", "message": "Failed to send verification email"},
        )


@router.post("/verify-email/send", response_model=CodeSentResponse)
async def send_verification_email(
    identity: AuthenticatedUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> CodeSentResponse:
    """Email a new verification code to the current user."""
    result = await accounts.send_email_verification(identity.id)
    _raise_for(result)
    _raise_if_not_sent(result)
    return CodeSentResponse(
        message="Verification code sent to your email",
        expires_at=result.expires_at,
    )


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    body: VerifyEmailRequest,
    identity: AuthenticatedUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    """Confirm the current user's email with a code."""
    _raise_for(accounts.confirm_email(identity.id, body.code))
    return MessageResponse(message="Email verified")


@router.post("/password-reset/request", response_model=MessageResponse)
async def request_password_reset(
    body: PasswordResetRequest,
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    """
    Email a password reset code if the address belongs to an account.

    The response is identical for unknown addresses and failed sends.
    """
    await accounts.request_password_reset(body.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(
    body: PasswordResetConfirm,
    accounts: AccountService = Depends(get_account_service),
    users: IUserStore = Depends(get_user_store),
) -> MessageResponse:
    """Set a new password using a password reset code."""
    user = users.find_by_email(body.email)
    if user is None:
        # Same answer as a wrong code, so the endpoint does not reveal accounts.
        _raise_for(AccountActionResult.failure(AccountFailureReason.NO_CODE_FOUND))

    _raise_for(accounts.reset_password(user.id, body.code, body.new_password))
    return MessageResponse(message="Password has been reset")
