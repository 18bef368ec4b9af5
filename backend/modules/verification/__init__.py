"""
Verification code module.

Issues, checks and expires single-use 6-digit codes keyed by
(user, action).

Public API:
- IVerificationService: Interface for code operations
- VerificationService: Default implementation
- InMemoryCodeStore: In-process code storage
- VerificationAction, VerificationFailureReason, VerificationResult, IssuedCode
"""

from .interfaces import IVerificationService, ICodeStore
from .models import (
    VerificationAction,
    VerificationCode,
    VerificationFailureReason,
    VerificationResult,
    IssuedCode,
)
from .store import InMemoryCodeStore
from .service import VerificationService, generate_code, CODE_TTL

__all__ = [
    # Interfaces
    "IVerificationService",
    "ICodeStore",
    # Models
    "VerificationAction",
    "VerificationCode",
    "VerificationFailureReason",
    "VerificationResult",
    "IssuedCode",
    # Implementation
    "InMemoryCodeStore",
    "VerificationService",
    "generate_code",
    "CODE_TTL",
]
