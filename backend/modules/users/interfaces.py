"""
User store interface.

The subscription and account modules depend on IUserStore, never on a
concrete database. Every bulk mutation is a filter-then-update, so callers
never need locks or compare-and-swap on single records.
"""

from datetime import datetime
from typing import Protocol, Optional, Any, runtime_checkable

from .models import User, UserFilter, UserRole


@runtime_checkable
class IUserStore(Protocol):
    """
    Contract for persistent user storage.

    Failures of the underlying database propagate to the caller.
    """

    def find_by_id(self, user_id: str) -> Optional[User]:
        """Return the user with this ID, or None."""
        ...

    def find_by_email(self, email: str) -> Optional[User]:
        """Return the user with this email address, or None."""
        ...

    def find_by_username(self, username: str) -> Optional[User]:
        """Return the user with this username, or None."""
        ...

    def find_many(self, criteria: UserFilter) -> list[User]:
        """Return every user matching the filter."""
        ...

    def search(
        self,
        text: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """
        Page through users, newest first.

        Args:
            text: Case-insensitive substring of the username or email
            offset: Number of matching users to skip
            limit: Maximum number of users to return

        Returns:
            The page of users and the total number of matches
        """
        ...

    def update_many(self, criteria: UserFilter, patch: dict[str, Any]) -> int:
        """
        Apply a field patch to every user matching the filter.

        Args:
            criteria: Which users to update
            patch: Field name to new value (User field names)

        Returns:
            Number of users updated
        """
        ...

    def save(self, user: User) -> User:
        """
        Insert or replace a whole user record (seeding and imports).

        Changes to an existing user go through update_many with a
        ``user_id`` filter, so concurrent writes to other fields survive.
        """
        ...

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.FREE,
        subscription_expires: Optional[datetime] = None,
    ) -> User:
        """Create a login and its user record. The store assigns the ID."""
        ...

    def delete_user(self, user_id: str) -> None:
        """
        Delete a login and its user record.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        ...

    def increment_prompts_used(self, user_id: str) -> int:
        """
        Increment a user's daily prompt counter.

        Returns:
            The new counter value

        Raises:
            UserNotFoundError: If the user does not exist
        """
        ...

    def update_password(self, user_id: str, new_password: str) -> None:
        """Replace a user's password."""
        ...

    def count_by_role(self) -> dict[str, int]:
        """Return user counts keyed by role value, plus "total"."""
        ...
