"""
Base repository class for database access.

Keeps Supabase client access in one place so repositories only deal with
table queries and row-to-model mapping.
"""

from typing import TypeVar, Generic
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for Supabase-backed repositories.

    Subclasses implement domain-specific data access methods and map
    rows to Pydantic models internally.

    Example:
        class SupabaseUserRepository(BaseRepository[User]):
            def find_by_id(self, user_id: str) -> Optional[User]:
                result = self._db.table("profiles").select("*").eq("id", user_id).execute()
                if not result.data:
                    return None
                return self._map_to_user(result.data[0])
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db
