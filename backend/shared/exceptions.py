"""
Base exception classes for the prompt generator backend.

Each module should define its own exceptions that inherit from these bases.
Expected validation outcomes (wrong verification code, bad duration) are
returned as result objects and do not use these classes.
"""

from typing import Optional, Any


class PromptGenError(Exception):
    """
    Base exception for all backend errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(PromptGenError):
    """Resource not found."""

    pass


class ValidationError(PromptGenError):
    """Input validation failed."""

    pass


class AuthenticationError(PromptGenError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(PromptGenError):
    """Authorization failed (insufficient permissions)."""

    pass


class ExternalServiceError(PromptGenError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
