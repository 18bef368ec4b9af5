"""
Users module.

Owns the user record and the store contract used by the lifecycle and
account modules.

Public API:
- IUserStore: Interface for user storage
- User, UserRole, UserFilter: Data models
- InMemoryUserStore, SupabaseUserRepository: Store implementations
"""

from .interfaces import IUserStore
from .models import User, UserRole, UserFilter
from .exceptions import UserNotFoundError
from .repository import InMemoryUserStore, SupabaseUserRepository

__all__ = [
    # Interface
    "IUserStore",
    # Models
    "User",
    "UserRole",
    "UserFilter",
    # Exceptions
    "UserNotFoundError",
    # Stores
    "InMemoryUserStore",
    "SupabaseUserRepository",
]
