"""
Accounts module.

Email verification and password reset flows, gated by verification codes,
and the admin console's user management.

Public API:
- AccountService: Account flows over IUserStore and IVerificationService
- AccountActionResult, AccountFailureReason, UserPage: Result models
"""

from .models import AccountActionResult, AccountFailureReason, UserPage
from .service import AccountService

__all__ = [
    "AccountActionResult",
    "AccountFailureReason",
    "AccountService",
    "UserPage",
]
