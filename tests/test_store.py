"""Unit tests for auth/store.py -- SqlStore user and app queries.

Covers:
- save_user assigns a fresh ID and enforces email uniqueness
- user_by_email / is_admin / app raise the storage not-found conditions
- set_admin flips the flag and reports unknown IDs
- save_app / list_apps round trip; duplicate app IDs rejected
- ping reports a live database
"""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from auth.errors import AppRecordNotFoundError, DuplicateEmailError, UserRecordNotFoundError
from auth.models import NIL_USER_ID, App
from auth.store import SqlStore


@pytest.fixture
def store():
    """In-memory SqlStore with no rows."""
    s = SqlStore("sqlite:///:memory:")
    yield s
    s.close()


class TestUsers:
    def test_save_user_returns_new_id(self, store: SqlStore) -> None:
        uid = store.save_user("a@x.com", b"$2b$04$hash")
        assert isinstance(uid, uuid.UUID)
        assert uid != NIL_USER_ID

    def test_user_by_email_returns_stored_fields(self, store: SqlStore) -> None:
        uid = store.save_user("a@x.com", b"$2b$04$hash")
        user = store.user_by_email("a@x.com")
        assert user.id == uid
        assert user.email == "a@x.com"
        assert user.pass_hash == b"$2b$04$hash"
        assert user.is_admin is False
        assert user.created_at

    def test_duplicate_email_raises_and_keeps_original(self, store: SqlStore) -> None:
        uid = store.save_user("a@x.com", b"first")
        with pytest.raises(DuplicateEmailError):
            store.save_user("a@x.com", b"second")
        user = store.user_by_email("a@x.com")
        assert user.id == uid
        assert user.pass_hash == b"first"

    def test_email_lookup_is_case_sensitive(self, store: SqlStore) -> None:
        store.save_user("a@x.com", b"hash")
        with pytest.raises(UserRecordNotFoundError):
            store.user_by_email("A@X.COM")

    def test_unknown_email_raises(self, store: SqlStore) -> None:
        with pytest.raises(UserRecordNotFoundError):
            store.user_by_email("nobody@x.com")

    def test_is_admin_defaults_false(self, store: SqlStore) -> None:
        uid = store.save_user("a@x.com", b"hash")
        assert store.is_admin(uid) is False

    def test_set_admin_grants_and_revokes(self, store: SqlStore) -> None:
        uid = store.save_user("a@x.com", b"hash")
        assert store.set_admin(uid) is True
        assert store.is_admin(uid) is True
        assert store.set_admin(uid, False) is True
        assert store.is_admin(uid) is False

    def test_set_admin_unknown_user(self, store: SqlStore) -> None:
        assert store.set_admin(uuid.uuid4()) is False

    def test_is_admin_unknown_user_raises(self, store: SqlStore) -> None:
        with pytest.raises(UserRecordNotFoundError):
            store.is_admin(uuid.uuid4())


class TestApps:
    def test_app_round_trip(self, store: SqlStore) -> None:
        store.save_app(App(id=42, name="billing", secret="s" * 64))
        app = store.app(42)
        assert app.id == 42
        assert app.name == "billing"
        assert app.secret == "s" * 64

    def test_unknown_app_raises(self, store: SqlStore) -> None:
        with pytest.raises(AppRecordNotFoundError):
            store.app(99)

    def test_duplicate_app_id_rejected(self, store: SqlStore) -> None:
        store.save_app(App(id=42, name="billing", secret="s" * 64))
        with pytest.raises(IntegrityError):
            store.save_app(App(id=42, name="other", secret="t" * 64))

    def test_list_apps_ordered_by_id(self, store: SqlStore) -> None:
        store.save_app(App(id=43, name="reports", secret="s" * 64))
        store.save_app(App(id=7, name="billing", secret="t" * 64))
        assert [a.id for a in store.list_apps()] == [7, 43]


def test_ping(store: SqlStore) -> None:
    assert store.ping() is True
