"""
Account flows built on verification codes: email verification and
password reset. Also the admin console's user management: listing,
creating and deleting users and resetting their passwords.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from modules.users.interfaces import IUserStore
from modules.users.models import User, UserFilter, UserRole
from modules.verification.interfaces import IVerificationService
from modules.verification.models import VerificationAction, VerificationResult
from modules.verification.service import utc_now

from .models import AccountActionResult, AccountFailureReason, UserPage

logger = logging.getLogger(__name__)

# Subscription given to a pro user created from the admin console.
DEFAULT_PRO_TERM = timedelta(days=30)


class AccountService:
    """
    Email verification, password reset and admin user management.

    A code is bound to the email it was sent to. If the user's email
    changed after issuance, the code is refused with ``email_mismatch``.
    """

    def __init__(
        self,
        users: IUserStore,
        verification: IVerificationService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._users = users
        self._verification = verification
        self._clock = clock

    async def send_email_verification(self, user_id: str) -> AccountActionResult:
        user = self._users.find_by_id(user_id)
        if user is None:
            return AccountActionResult.failure(AccountFailureReason.USER_NOT_FOUND)
        if user.email_verified:
            return AccountActionResult.failure(AccountFailureReason.ALREADY_VERIFIED)

        self._verification.invalidate(user.id, VerificationAction.EMAIL_VERIFY)
        issued = await self._verification.issue(
            user.id,
            user.email,
            VerificationAction.EMAIL_VERIFY,
            display_name=user.display_name,
        )
        return AccountActionResult(
            ok=True,
            sent=issued.sent,
            expires_at=issued.expires_at,
            email=user.email,
        )

    def confirm_email(self, user_id: str, code: str) -> AccountActionResult:
        checked = self._check_code(user_id, code, VerificationAction.EMAIL_VERIFY)
        if isinstance(checked, AccountActionResult):
            return checked

        if not self._users.update_many(UserFilter(user_id=checked.id), {"email_verified": True}):
            return AccountActionResult.failure(AccountFailureReason.USER_NOT_FOUND)
        logger.info(f"Email verified for {checked.email}")
        return AccountActionResult(ok=True, email=checked.email)

    async def request_password_reset(self, email: str) -> AccountActionResult:
        user = self._users.find_by_email(email)
        if user is None:
            logger.info(f"Password reset requested for unknown email {email}")
            return AccountActionResult(ok=True, user_found=False)

        issued = await self._verification.issue(
            user.id,
            user.email,
            VerificationAction.PASSWORD_RESET,
            display_name=user.display_name,
        )
        return AccountActionResult(
            ok=True,
            sent=issued.sent,
            expires_at=issued.expires_at,
            email=user.email,
        )

    def reset_password(self, user_id: str, code: str, new_password: str) -> AccountActionResult:
        checked = self._check_code(user_id, code, VerificationAction.PASSWORD_RESET)
        if isinstance(checked, AccountActionResult):
            return checked

        self._users.update_password(checked.id, new_password)
        logger.info(f"Password reset for {checked.email}")
        return AccountActionResult(ok=True, email=checked.email)

    def _check_code(
        self,
        user_id: str,
        code: str,
        action: VerificationAction,
    ) -> Union[User, AccountActionResult]:
        """Verify a code and return the user it belongs to, or a failure."""
        result: VerificationResult = self._verification.verify(user_id, code, action)
        if not result.valid:
            return AccountActionResult.failure(
                AccountFailureReason.from_verification(result.reason)
            )

        user = self._users.find_by_id(user_id)
        if user is None:
            return AccountActionResult.failure(AccountFailureReason.USER_NOT_FOUND)
        if result.email != user.email:
            logger.warning(f"Email changed since the {action.value} code was issued for {user_id}")
            return AccountActionResult.failure(AccountFailureReason.EMAIL_MISMATCH)
        return user

    # -------------------------------------------------------------------------
    # Admin user management
    # -------------------------------------------------------------------------

    def list_users(self, search: Optional[str] = None, page: int = 1, limit: int = 10) -> UserPage:
        """Newest users first, optionally filtered by username or email."""
        page = max(page, 1)
        users, total = self._users.search(search or None, offset=(page - 1) * limit, limit=limit)
        return UserPage(users=users, total=total, page=page, limit=limit)

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: Union[UserRole, str] = UserRole.FREE,
    ) -> AccountActionResult:
        """
        Create a free or pro user.

        Pro users start with a 30-day subscription. Admins cannot be
        created here.
        """
        if self._users.find_by_email(email) is not None:
            return AccountActionResult.failure(AccountFailureReason.EMAIL_TAKEN)
        if self._users.find_by_username(username) is not None:
            return AccountActionResult.failure(AccountFailureReason.USERNAME_TAKEN)
        try:
            role = UserRole(role)
        except ValueError:
            return AccountActionResult.failure(AccountFailureReason.INVALID_ROLE)
        if role == UserRole.ADMIN:
            return AccountActionResult.failure(AccountFailureReason.INVALID_ROLE)

        expires = self._clock() + DEFAULT_PRO_TERM if role == UserRole.PRO else None
        user = self._users.create_user(
            username,
            email,
            password,
            role=role,
            subscription_expires=expires,
        )
        logger.info(f"Created {role.value} user {email}")
        return AccountActionResult(ok=True, email=user.email, user=user)

    def delete_user(self, user_id: str) -> AccountActionResult:
        user = self._users.find_by_id(user_id)
        if user is None:
            return AccountActionResult.failure(AccountFailureReason.USER_NOT_FOUND)
        if user.role == UserRole.ADMIN:
            return AccountActionResult.failure(AccountFailureReason.ADMIN_PROTECTED)

        self._users.delete_user(user.id)
        logger.info(f"Deleted user {user.email}")
        return AccountActionResult(ok=True, email=user.email, user=user)

    def admin_reset_password(
        self,
        admin: User,
        user_id: str,
        new_password: str,
    ) -> AccountActionResult:
        """Set a user's password directly. Other admins' passwords are off limits."""
        user = self._users.find_by_id(user_id)
        if user is None:
            return AccountActionResult.failure(AccountFailureReason.USER_NOT_FOUND)
        if user.role == UserRole.ADMIN and user.id != admin.id:
            return AccountActionResult.failure(AccountFailureReason.ADMIN_PROTECTED)

        self._users.update_password(user.id, new_password)
        logger.info(f"Password for {user.email} reset by {admin.email}")
        return AccountActionResult(ok=True, email=user.email, user=user)
