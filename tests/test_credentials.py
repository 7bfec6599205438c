"""
Name: Credential Mutation Tests

Responsibilities:
  - Self-service change: success path, wrong current password, policy
    violations, reuse history
  - Administrative reset: role check, forced-change flag, generated and
    supplied temporary passwords, superadmin protection
  - Compare-and-swap write and login bookkeeping
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from auth import credentials, service
from core.errors import (
    AccountDisabled,
    Conflict,
    Forbidden,
    InsufficientRole,
    InvalidCredentials,
    NotFound,
    PolicyViolation,
    WrongCurrentPassword,
)
from core.password_policy import REASON_REUSED, PasswordPolicy
from core.security import hash_password, verify_password
from models.audit_log import AuditLog
from models.password_history import PasswordHistory
from models.session import UserSession
from models.user import User

from conftest import DEFAULT_PASSWORD

pytestmark = pytest.mark.unit

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
T1 = datetime(2025, 3, 1, tzinfo=timezone.utc)


def _reload(db, user_id) -> User:
    db.expire_all()
    return db.get(User, user_id)


def _as_utc(value):
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# change_password
# ---------------------------------------------------------------------------


class TestChangePassword:
    def test_success_clears_flag_and_stamps_time(self, db, make_user, policy):
        user = make_user(must_change_password=True, password_changed_at=T0)

        credentials.change_password(db, user.id, DEFAULT_PASSWORD, "newlunch42", policy=policy, now=T1)

        stored = _reload(db, user.id)
        assert stored.must_change_password is False
        assert _as_utc(stored.password_changed_at) == T1
        assert verify_password("newlunch42", stored.password_hash)

    def test_same_password_is_allowed_without_reuse_prevention(self, db, make_user, policy):
        user = make_user()
        credentials.change_password(db, user.id, DEFAULT_PASSWORD, DEFAULT_PASSWORD, policy=policy, now=T1)
        assert _as_utc(_reload(db, user.id).password_changed_at) == T1

    def test_wrong_current_password_writes_nothing(self, db, make_user, policy):
        user = make_user(must_change_password=True, password_changed_at=T0)
        before = user.password_hash

        with pytest.raises(WrongCurrentPassword):
            credentials.change_password(db, user.id, "not-my-password1", "newlunch42", policy=policy, now=T1)

        stored = _reload(db, user.id)
        assert stored.password_hash == before
        assert stored.must_change_password is True
        assert _as_utc(stored.password_changed_at) == T0
        assert db.query(AuditLog).filter(AuditLog.action == "change_password").count() == 0

    def test_policy_violation_writes_nothing(self, db, make_user, policy):
        user = make_user(must_change_password=True)
        before = user.password_hash

        with pytest.raises(PolicyViolation) as exc_info:
            credentials.change_password(db, user.id, DEFAULT_PASSWORD, "short", policy=policy)

        assert exc_info.value.reasons == ["too_short", "insufficient_class_diversity"]
        stored = _reload(db, user.id)
        assert stored.password_hash == before
        assert stored.must_change_password is True

    def test_unknown_user(self, db, policy):
        with pytest.raises(NotFound):
            credentials.change_password(db, 999, DEFAULT_PASSWORD, "newlunch42", policy=policy)

    def test_reuse_prevention_rejects_recent_passwords(self, db, make_user):
        policy = PasswordPolicy(prevent_reuse=3)
        user = make_user()

        credentials.change_password(db, user.id, DEFAULT_PASSWORD, "second22", policy=policy)
        credentials.change_password(db, user.id, "second22", "third333", policy=policy)

        for reused in ("third333", "second22", DEFAULT_PASSWORD):
            with pytest.raises(PolicyViolation) as exc_info:
                credentials.change_password(db, user.id, "third333", reused, policy=policy)
            assert exc_info.value.reasons == [REASON_REUSED]

        credentials.change_password(db, user.id, "third333", "fourth44", policy=policy)
        # Only prevent_reuse - 1 previous hashes are kept
        assert db.query(PasswordHistory).filter(PasswordHistory.user_id == user.id).count() == 2
        # The oldest one fell out of the window
        credentials.change_password(db, user.id, "fourth44", DEFAULT_PASSWORD, policy=policy)

    def test_compare_and_swap_refuses_stale_hash(self, db, make_user):
        user = make_user()
        current = user.password_hash

        swapped = credentials._swap_password(
            db, user, "stale-hash", hash_password("other999"), must_change=False, now=T1
        )
        db.commit()

        assert swapped is False
        assert _reload(db, user.id).password_hash == current


# ---------------------------------------------------------------------------
# reset_password
# ---------------------------------------------------------------------------


class TestResetPassword:
    def test_non_admin_is_forbidden_and_nothing_changes(self, db, make_user, policy):
        caller = make_user("bob")
        target = make_user("alice", password_changed_at=T0)
        before = target.password_hash

        with pytest.raises(InsufficientRole):
            credentials.reset_password(db, caller.id, target.id, policy=policy)

        stored = _reload(db, target.id)
        assert stored.password_hash == before
        assert stored.must_change_password is False
        assert _as_utc(stored.password_changed_at) == T0

    def test_generated_password_forces_change(self, db, make_user, policy):
        admin = make_user("admin", role="admin")
        target = make_user("alice", must_change_password=False)

        result = credentials.reset_password(db, admin.id, target.id, policy=policy, now=T1)

        assert result.generated is True
        assert len(result.temporary_password) == 8
        assert set(result.temporary_password) <= set(policy.temp_password_alphabet)
        stored = _reload(db, target.id)
        assert stored.must_change_password is True
        assert _as_utc(stored.password_changed_at) == T1
        assert verify_password(result.temporary_password, stored.password_hash)

    def test_supplied_password_must_meet_policy(self, db, make_user, policy):
        admin = make_user("admin", role="admin")
        target = make_user("alice")
        before = target.password_hash

        with pytest.raises(PolicyViolation):
            credentials.reset_password(db, admin.id, target.id, "weak", policy=policy)
        assert _reload(db, target.id).password_hash == before

        result = credentials.reset_password(db, admin.id, target.id, "tempo123", policy=policy)
        assert result.generated is False
        assert result.temporary_password == "tempo123"

    def test_unknown_target(self, db, make_user, policy):
        admin = make_user("admin", role="admin")
        with pytest.raises(NotFound):
            credentials.reset_password(db, admin.id, 999, policy=policy)

    def test_admin_cannot_reset_superadmin(self, db, make_user, policy):
        admin = make_user("admin", role="admin")
        root = make_user("root", role="superadmin")
        with pytest.raises(Forbidden):
            credentials.reset_password(db, admin.id, root.id, policy=policy)

    def test_superadmin_can_reset_anyone(self, db, make_user, policy):
        root = make_user("root", role="superadmin")
        admin = make_user("admin", role="admin")
        result = credentials.reset_password(db, root.id, admin.id, policy=policy)
        assert result.user.must_change_password is True

    def test_audit_never_contains_the_password(self, db, make_user, policy):
        admin = make_user("admin", role="admin")
        target = make_user("alice")

        result = credentials.reset_password(db, admin.id, target.id, policy=policy)

        rows = db.query(AuditLog).filter(AuditLog.action == "reset_password").all()
        assert len(rows) == 1
        assert rows[0].actor_id == admin.id
        assert result.temporary_password not in (rows[0].detail or "")

    def test_reset_then_change_with_temporary_password(self, db, make_user, policy):
        admin = make_user("admin", role="admin")
        target = make_user("alice")

        temp = credentials.reset_password(db, admin.id, target.id, policy=policy).temporary_password
        user = service.authenticate(db, "alice", temp)
        assert service.password_status(db, user.id, policy=policy).must_change_password is True

        credentials.change_password(db, target.id, temp, "mychoice9", policy=policy)
        assert service.password_status(db, target.id, policy=policy).must_change_password is False

    def test_conflict_error_is_409(self):
        assert Conflict.status_code == 409


# ---------------------------------------------------------------------------
# authenticate
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_unknown_user_and_wrong_password_look_the_same(self, db, make_user):
        make_user("alice")

        with pytest.raises(InvalidCredentials) as unknown:
            service.authenticate(db, "nobody", DEFAULT_PASSWORD)
        with pytest.raises(InvalidCredentials) as wrong:
            service.authenticate(db, "alice", "wrong-password1")

        assert unknown.value.to_dict() == wrong.value.to_dict()

    def test_inactive_user_is_rejected(self, db, make_user):
        make_user("alice", is_active=False)
        with pytest.raises(AccountDisabled):
            service.authenticate(db, "alice", DEFAULT_PASSWORD)

    def test_success_records_last_login(self, db, make_user):
        user = make_user("alice")
        service.authenticate(db, "alice", DEFAULT_PASSWORD, now=T1)
        assert _as_utc(_reload(db, user.id).last_login_at) == T1

    def test_last_login_failure_does_not_block(self, db, make_user, monkeypatch):
        make_user("alice")

        def _boom():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db, "commit", _boom)
        user = service.authenticate(db, "alice", DEFAULT_PASSWORD)
        assert user.username == "alice"


class TestSessions:
    def test_session_round_trip_and_destroy(self, db, make_user):
        user = make_user("alice")
        token = service.create_session(db, user)

        assert service.current_session_user(db, token).id == user.id

        service.destroy_session(db, token)
        assert service.current_session_user(db, token) is None

    def test_lapsed_session_is_ignored(self, db, make_user):
        user = make_user("alice")
        token = service.create_session(db, user)
        later = datetime.now(timezone.utc) + timedelta(days=8)
        assert service.current_session_user(db, token, now=later) is None

    def test_forged_token_is_ignored(self, db):
        assert service.current_session_user(db, "not-a-jwt") is None

    def test_new_login_purges_lapsed_sessions(self, db, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        month_ago = datetime.now(timezone.utc) - timedelta(days=30)
        for user in (alice, alice, bob):
            service.create_session(db, user, now=month_ago)

        token = service.create_session(db, bob)

        assert service.current_session_user(db, token).id == bob.id
        assert db.query(UserSession).count() == 1

    def test_lookup_of_lapsed_session_purges_it(self, db, make_user):
        user = make_user("alice")
        token = service.create_session(db, user)
        later = datetime.now(timezone.utc) + timedelta(days=8)

        assert service.current_session_user(db, token, now=later) is None
        assert db.query(UserSession).count() == 0
