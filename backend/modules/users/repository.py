"""
User store implementations.

InMemoryUserStore backs development and tests. SupabaseUserRepository is
the production store, reading and writing the ``profiles`` table.
"""

import threading
import uuid
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any

from supabase import Client

from shared.repository import BaseRepository
from .models import User, UserFilter, UserRole, as_utc
from .exceptions import UserNotFoundError


class InMemoryUserStore:
    """
    User store kept in a process-local dict.

    Records are copied on the way in and out, so callers never share
    mutable state with the store.
    """

    def __init__(self, users: Optional[list[User]] = None):
        self._lock = threading.Lock()
        self._users: dict[str, User] = {}
        self._passwords: dict[str, str] = {}
        for user in users or []:
            self._users[user.id] = user.model_copy()

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.model_copy()
        return None

    def find_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user.model_copy()
        return None

    def find_many(self, criteria: UserFilter) -> list[User]:
        with self._lock:
            return [u.model_copy() for u in self._users.values() if criteria.matches(u)]

    def search(
        self,
        text: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        needle = (text or "").lower()
        with self._lock:
            matched = [
                u for u in self._users.values()
                if needle in u.username.lower() or needle in u.email.lower()
            ]
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        matched.sort(key=lambda u: as_utc(u.created_at) if u.created_at else oldest, reverse=True)
        page = matched[offset:offset + limit]
        return [u.model_copy() for u in page], len(matched)

    def update_many(self, criteria: UserFilter, patch: dict[str, Any]) -> int:
        with self._lock:
            matched = [u for u in self._users.values() if criteria.matches(u)]
            for user in matched:
                self._users[user.id] = user.model_copy(update=patch)
            return len(matched)

    def save(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user.model_copy()
        return user

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.FREE,
        subscription_expires: Optional[datetime] = None,
    ) -> User:
        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            role=role,
            subscription_expires=subscription_expires,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._users[user.id] = user
            self._passwords[user.id] = password
        return user.model_copy()

    def delete_user(self, user_id: str) -> None:
        with self._lock:
            if self._users.pop(user_id, None) is None:
                raise UserNotFoundError(user_id)
            self._passwords.pop(user_id, None)

    def increment_prompts_used(self, user_id: str) -> int:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            updated = user.model_copy(
                update={"prompts_used_today": user.prompts_used_today + 1}
            )
            self._users[user_id] = updated
            return updated.prompts_used_today

    def update_password(self, user_id: str, new_password: str) -> None:
        with self._lock:
            if user_id not in self._users:
                raise UserNotFoundError(user_id)
            self._passwords[user_id] = new_password

    def password_for(self, user_id: str) -> Optional[str]:
        """Return the last password set for a user (development helper)."""
        with self._lock:
            return self._passwords.get(user_id)

    def count_by_role(self) -> dict[str, int]:
        with self._lock:
            counts = Counter(u.role.value for u in self._users.values())
        result = dict(counts)
        result["total"] = sum(counts.values())
        return result


class SupabaseUserRepository(BaseRepository[User]):
    """
    User store backed by the Supabase ``profiles`` table.

    Passwords live in Supabase Auth and are changed through the admin API.
    The daily counter is incremented by the ``increment_prompts_used`` RPC
    so concurrent prompt requests cannot lose updates.
    """

    TABLE = "profiles"

    def find_by_id(self, user_id: str) -> Optional[User]:
        result = self._db.table(self.TABLE).select("*").eq("id", user_id).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    def find_by_email(self, email: str) -> Optional[User]:
        result = self._db.table(self.TABLE).select("*").eq("email", email).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    def find_by_username(self, username: str) -> Optional[User]:
        result = self._db.table(self.TABLE).select("*").eq("username", username).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    def find_many(self, criteria: UserFilter) -> list[User]:
        query = self._apply_filter(self._db.table(self.TABLE).select("*"), criteria)
        result = query.execute()
        return [self._map_to_user(row) for row in result.data]

    def search(
        self,
        text: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        query = self._db.table(self.TABLE).select("*", count="exact")
        if text:
            query = query.or_(f"username.ilike.%{text}%,email.ilike.%{text}%")
        result = (
            query.order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        users = [self._map_to_user(row) for row in result.data]
        return users, result.count or 0

    def update_many(self, criteria: UserFilter, patch: dict[str, Any]) -> int:
        query = self._db.table(self.TABLE).update(self._to_row(patch))
        result = self._apply_filter(query, criteria).execute()
        return len(result.data or [])

    def save(self, user: User) -> User:
        row = self._to_row(user.model_dump())
        result = self._db.table(self.TABLE).upsert(row).execute()
        if result.data:
            return self._map_to_user(result.data[0])
        return user

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.FREE,
        subscription_expires: Optional[datetime] = None,
    ) -> User:
        created = self._db.auth.admin.create_user({
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"username": username},
        })
        user = User(
            id=str(created.user.id),
            username=username,
            email=email,
            role=role,
            subscription_expires=subscription_expires,
        )
        row = self._to_row(user.model_dump(exclude={"created_at"}))
        result = self._db.table(self.TABLE).upsert(row).execute()
        if result.data:
            return self._map_to_user(result.data[0])
        return user

    def delete_user(self, user_id: str) -> None:
        if self.find_by_id(user_id) is None:
            raise UserNotFoundError(user_id)
        # The profile row is removed by ON DELETE CASCADE.
        self._db.auth.admin.delete_user(user_id)

    def increment_prompts_used(self, user_id: str) -> int:
        result = self._db.rpc("increment_prompts_used", {"p_user_id": user_id}).execute()
        if result.data is None:
            raise UserNotFoundError(user_id)
        return int(result.data)

    def update_password(self, user_id: str, new_password: str) -> None:
        self._db.auth.admin.update_user_by_id(user_id, {"password": new_password})

    def count_by_role(self) -> dict[str, int]:
        result = self._db.table(self.TABLE).select("role").execute()
        counts = Counter(row["role"] for row in result.data)
        summary = dict(counts)
        summary["total"] = sum(counts.values())
        return summary

    # -------------------------------------------------------------------------
    # Mapping helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _apply_filter(query: Any, criteria: UserFilter) -> Any:
        if criteria.user_id is not None:
            query = query.eq("id", criteria.user_id)
        if criteria.role is not None:
            query = query.eq("role", criteria.role.value)
        if criteria.expires_before is not None:
            query = query.lt("subscription_expires", as_utc(criteria.expires_before).isoformat())
        if criteria.expires_from is not None:
            query = query.gte("subscription_expires", as_utc(criteria.expires_from).isoformat())
        if criteria.expires_to is not None:
            query = query.lte("subscription_expires", as_utc(criteria.expires_to).isoformat())
        return query

    @staticmethod
    def _to_row(values: dict[str, Any]) -> dict[str, Any]:
        row: dict[str, Any] = {}
        for key, value in values.items():
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            row[key] = value
        return row

    @staticmethod
    def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    def _map_to_user(self, row: dict[str, Any]) -> User:
        return User(
            id=row["id"],
            username=row.get("username") or "",
            email=row["email"],
            role=row.get("role", "free"),
            subscription_expires=self._parse_datetime(row.get("subscription_expires")),
            prompts_used_today=row.get("prompts_used_today", 0),
            last_quota_reset=self._parse_datetime(row.get("last_quota_reset")),
            email_verified=row.get("email_verified", False),
            created_at=self._parse_datetime(row.get("created_at")),
        )
