"""
Tests for the user stores.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from modules.users.exceptions import UserNotFoundError
from modules.users.models import User, UserFilter, UserRole
from modules.users.repository import InMemoryUserStore, SupabaseUserRepository

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _user(user_id: str, role: UserRole = UserRole.FREE, **fields) -> User:
    return User(id=user_id, username=user_id, email=f"{user_id}@example.com", role=role, **fields)


class TestUserFilter:
    def test_role_filter(self):
        criteria = UserFilter(role=UserRole.PRO)
        assert criteria.matches(_user("a", UserRole.PRO))
        assert not criteria.matches(_user("b", UserRole.FREE))

    def test_expires_before_is_strict(self):
        criteria = UserFilter(expires_before=NOW)
        assert criteria.matches(_user("a", subscription_expires=NOW - timedelta(seconds=1)))
        assert not criteria.matches(_user("b", subscription_expires=NOW))

    def test_expiry_range_is_inclusive(self):
        criteria = UserFilter(expires_from=NOW, expires_to=NOW + timedelta(days=3))
        assert criteria.matches(_user("a", subscription_expires=NOW))
        assert criteria.matches(_user("b", subscription_expires=NOW + timedelta(days=3)))
        assert not criteria.matches(_user("c", subscription_expires=NOW + timedelta(days=4)))

    def test_missing_expiry_never_matches_expiry_condition(self):
        assert not UserFilter(expires_before=NOW).matches(_user("a"))
        assert UserFilter(role=UserRole.FREE).matches(_user("a"))

    def test_naive_timestamps_are_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        criteria = UserFilter(expires_before=NOW, expires_to=NOW)
        assert criteria.matches(_user("a", subscription_expires=naive_now - timedelta(hours=1)))
        assert not UserFilter(expires_before=naive_now).matches(_user("b", subscription_expires=NOW))
        assert UserFilter(expires_from=naive_now).matches(_user("c", subscription_expires=NOW))


class TestInMemoryUserStore:
    @pytest.fixture
    def store(self):
        return InMemoryUserStore([
            _user("free-1"),
            _user("free-2", prompts_used_today=2),
            _user("pro-1", UserRole.PRO, subscription_expires=NOW - timedelta(days=1)),
            _user("admin-1", UserRole.ADMIN),
        ])

    def test_find_by_id_and_email(self, store):
        assert store.find_by_id("free-1").email == "free-1@example.com"
        assert store.find_by_email("pro-1@example.com").id == "pro-1"
        assert store.find_by_id("missing") is None
        assert store.find_by_email("missing@example.com") is None

    def test_returned_records_are_copies(self, store):
        user = store.find_by_id("free-1")
        user.prompts_used_today = 99
        assert store.find_by_id("free-1").prompts_used_today == 0

    def test_update_many_applies_patch_and_counts(self, store):
        count = store.update_many(
            UserFilter(role=UserRole.FREE),
            {"prompts_used_today": 0, "last_quota_reset": NOW},
        )
        assert count == 2
        assert store.find_by_id("free-2").prompts_used_today == 0
        assert store.find_by_id("free-2").last_quota_reset == NOW
        assert store.find_by_id("admin-1").last_quota_reset is None

    def test_update_many_without_matches(self, store):
        assert store.update_many(UserFilter(user_id="missing"), {"email_verified": True}) == 0

    def test_increment_prompts_used(self, store):
        assert store.increment_prompts_used("free-2") == 3
        assert store.find_by_id("free-2").prompts_used_today == 3

    def test_increment_unknown_user_raises(self, store):
        with pytest.raises(UserNotFoundError):
            store.increment_prompts_used("missing")

    def test_update_password(self, store):
        store.update_password("free-1", "new-secret")
        assert store.password_for("free-1") == "new-secret"

    def test_update_password_unknown_user_raises(self, store):
        with pytest.raises(UserNotFoundError):
            store.update_password("missing", "x")

    def test_find_by_username(self, store):
        assert store.find_by_username("pro-1").id == "pro-1"
        assert store.find_by_username("missing") is None

    def test_search_pages_newest_first(self):
        store = InMemoryUserStore([
            _user(f"u{i}", created_at=NOW + timedelta(minutes=i)) for i in range(5)
        ])

        page, total = store.search(offset=1, limit=2)

        assert [u.id for u in page] == ["u3", "u2"]
        assert total == 5

    def test_search_text(self, store):
        page, total = store.search("PRO-")
        assert [u.id for u in page] == ["pro-1"]
        assert total == 1

    def test_create_user_assigns_id(self, store):
        user = store.create_user(
            "budi", "budi@example.com", "secret1", role=UserRole.PRO, subscription_expires=NOW
        )

        assert user.id
        assert store.find_by_id(user.id).subscription_expires == NOW
        assert store.password_for(user.id) == "secret1"
        assert store.find_by_id(user.id).created_at is not None

    def test_delete_user(self, store):
        store.update_password("free-1", "x")
        store.delete_user("free-1")

        assert store.find_by_id("free-1") is None
        assert store.password_for("free-1") is None
        with pytest.raises(UserNotFoundError):
            store.delete_user("free-1")

    def test_count_by_role(self, store):
        assert store.count_by_role() == {"free": 2, "pro": 1, "admin": 1, "total": 4}


class TestSupabaseUserRepository:
    @pytest.fixture
    def db(self):
        return MagicMock()

    @pytest.fixture
    def repo(self, db):
        return SupabaseUserRepository(db)

    def test_find_by_id_maps_row(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "id": "u1",
            "username": "budi",
            "email": "budi@example.com",
            "role": "pro",
            "subscription_expires": "2025-04-01T00:00:00Z",
            "prompts_used_today": 1,
            "email_verified": True,
        }]

        user = repo.find_by_id("u1")

        db.table.assert_called_with("profiles")
        assert user.role == UserRole.PRO
        assert user.subscription_expires == datetime(2025, 4, 1, tzinfo=timezone.utc)
        assert user.email_verified is True

    def test_find_by_id_missing(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        assert repo.find_by_id("missing") is None

    def test_update_many_serializes_patch(self, repo, db):
        update = db.table.return_value.update
        filtered = update.return_value.eq.return_value.lt.return_value
        filtered.execute.return_value.data = [{"id": "a"}, {"id": "b"}]

        count = repo.update_many(
            UserFilter(role=UserRole.PRO, expires_before=NOW),
            {"role": UserRole.FREE, "subscription_expires": None},
        )

        assert count == 2
        update.assert_called_once_with({"role": "free", "subscription_expires": None})
        update.return_value.eq.assert_called_once_with("role", "pro")
        update.return_value.eq.return_value.lt.assert_called_once_with(
            "subscription_expires", NOW.isoformat()
        )

    def test_update_many_sends_naive_bounds_as_utc(self, repo, db):
        update = db.table.return_value.update

        repo.update_many(UserFilter(expires_before=NOW.replace(tzinfo=None)), {"role": UserRole.FREE})

        update.return_value.lt.assert_called_once_with("subscription_expires", NOW.isoformat())

    def test_search_filters_and_pages(self, repo, db):
        select = db.table.return_value.select
        query = select.return_value.or_.return_value.order.return_value.range.return_value
        query.execute.return_value.data = [{"id": "u1", "email": "budi@example.com"}]
        query.execute.return_value.count = 7

        users, total = repo.search("budi", offset=10, limit=5)

        select.assert_called_once_with("*", count="exact")
        select.return_value.or_.assert_called_once_with("username.ilike.%budi%,email.ilike.%budi%")
        select.return_value.or_.return_value.order.assert_called_once_with("created_at", desc=True)
        select.return_value.or_.return_value.order.return_value.range.assert_called_once_with(10, 14)
        assert [u.id for u in users] == ["u1"]
        assert total == 7

    def test_create_user_creates_login_then_profile(self, repo, db):
        db.auth.admin.create_user.return_value.user.id = "new-id"
        db.table.return_value.upsert.return_value.execute.return_value.data = []

        user = repo.create_user(
            "budi", "budi@example.com", "secret1", role=UserRole.PRO, subscription_expires=NOW
        )

        assert user.id == "new-id"
        login = db.auth.admin.create_user.call_args.args[0]
        assert login["email"] == "budi@example.com"
        assert login["password"] == "secret1"
        row = db.table.return_value.upsert.call_args.args[0]
        assert row["id"] == "new-id"
        assert row["role"] == "pro"
        assert row["subscription_expires"] == NOW.isoformat()
        assert "created_at" not in row

    def test_delete_user_removes_login(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            {"id": "u1", "email": "u1@example.com"},
        ]
        repo.delete_user("u1")
        db.auth.admin.delete_user.assert_called_once_with("u1")

    def test_delete_unknown_user_raises(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(UserNotFoundError):
            repo.delete_user("missing")
        db.auth.admin.delete_user.assert_not_called()

    def test_increment_uses_rpc(self, repo, db):
        db.rpc.return_value.execute.return_value.data = 2
        assert repo.increment_prompts_used("u1") == 2
        db.rpc.assert_called_once_with("increment_prompts_used", {"p_user_id": "u1"})

    def test_update_password_uses_auth_admin(self, repo, db):
        repo.update_password("u1", "new-secret")
        db.auth.admin.update_user_by_id.assert_called_once_with("u1", {"password": "new-secret"})

    def test_count_by_role(self, repo, db):
        db.table.return_value.select.return_value.execute.return_value.data = [
            {"role": "free"}, {"role": "free"}, {"role": "pro"},
        ]
        assert repo.count_by_role() == {"free": 2, "pro": 1, "total": 3}
