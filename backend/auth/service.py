# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Identity services – login, server-side sessions and the password-status
projection.  Routers call these; nothing here knows about HTTP.

Security notes
--------------
* :func:`authenticate` raises the *same* ``InvalidCredentials`` error
  whether the username doesn't exist or the password is wrong, and burns a
  hash verification on the unknown-user path so timing does not leak either.
* Recording ``last_login_at`` is best effort: a storage failure there is
  logged and never blocks the login.
"""

import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core import password_policy
from core.config import settings
from core.errors import AccountDisabled, InsufficientRole, InvalidCredentials, NotFound
from core.logger import logger
from core.password_policy import PasswordPolicy, PasswordStatus, as_utc, utc_now
from core.security import (
    burn_verify,
    decode_session_token,
    encode_session_token,
    verify_password,
)
from models.audit_log import AuditLog
from models.session import UserSession
from models.user import User


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def load_admin(db: Session, actor_id: int) -> User:
    """Load the acting user and assert an admin role.  Raises 403 otherwise."""
    actor = db.get(User, actor_id)
    if actor is None or not actor.is_active or not actor.is_admin:
        raise InsufficientRole()
    return actor


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def authenticate(
    db: Session,
    username: str,
    password: str,
    *,
    request_ip: Optional[str] = None,
    now: Optional[datetime] = None,
) -> User:
    """Verify credentials and return the user.  Raises 401 on any failure."""
    user = db.query(User).filter(User.username == username).first()

    if user is None:
        burn_verify(password)
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountDisabled()

    _record_login(db, user, now or utc_now(), request_ip)
    return user


def _record_login(db: Session, user: User, now: datetime, request_ip: Optional[str]) -> None:
    user_id = user.id
    try:
        user.last_login_at = now
        db.add(AuditLog(actor_id=None, target_user_id=user_id, action="user_login", request_ip=request_ip))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not record login for user_id=%s", user_id, exc_info=True)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def create_session(db: Session, user: User, *, now: Optional[datetime] = None) -> str:
    """
    Persist a new session for *user* and return the signed cookie value.
    Lapsed sessions of every user are purged on the way.
    """
    now = now or utc_now()
    _purge_lapsed(db, now)
    expires_at = now + timedelta(minutes=settings.session_ttl_minutes)
    sid = secrets.token_urlsafe(32)
    db.add(UserSession(sid=sid, user_id=user.id, expires_at=expires_at))
    db.commit()
    return encode_session_token(sid, expires_at)


def _purge_lapsed(db: Session, now: datetime) -> None:
    purged = db.query(UserSession).filter(UserSession.expires_at <= now).delete(synchronize_session=False)
    if purged:
        logger.info("Purged %d lapsed session(s)", purged)


def _load_session(db: Session, token: str) -> Optional[UserSession]:
    sid = decode_session_token(token)
    if sid is None:
        return None
    return db.get(UserSession, sid)


def current_session_user(db: Session, token: str, *, now: Optional[datetime] = None) -> Optional[User]:
    """
    Resolve a session cookie to its user.  Returns None when the token is
    invalid, the session was destroyed or has lapsed, or the user is gone.
    Disabled users are returned as-is; the access gate rejects them.
    """
    session = _load_session(db, token)
    if session is None:
        return None
    now = now or utc_now()
    if as_utc(session.expires_at) <= now:
        _purge_lapsed(db, now)
        db.commit()
        return None
    return db.get(User, session.user_id)


def destroy_session(db: Session, token: str) -> None:
    session = _load_session(db, token)
    if session is not None:
        db.delete(session)
        db.commit()


# ---------------------------------------------------------------------------
# Password status
# ---------------------------------------------------------------------------


def status_for(user: User, policy: PasswordPolicy, now: datetime) -> PasswordStatus:
    return password_policy.evaluate(
        user.password_changed_at,
        user.password_expiry_days,
        user.must_change_password,
        now,
        policy.warning_days,
    )


def password_status(
    db: Session,
    user_id: int,
    *,
    policy: PasswordPolicy,
    now: Optional[datetime] = None,
) -> PasswordStatus:
    return status_for(get_user(db, user_id), policy, now or utc_now())
