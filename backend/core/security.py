# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  Cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Session-cookie tokens                    (PyJWT / HS256)
3. FastAPI dependency guards                (get_session_user,
                                             get_current_user, require_admin)
"""

from datetime import datetime
from functools import lru_cache

import jwt as _jwt        # PyJWT
from passlib.exc import PasswordSizeError
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Request
from fastapi.security import APIKeyCookie

from core.access import enforce, evaluate_access
from core.config import settings
from core.password_policy import utc_now
from database import get_db

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# Rounds come from settings (600 000 by default).  passlib embeds the salt
# and the round count in the hash string, so changing the setting never
# invalidates existing hashes.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Hash a plaintext password with PBKDF2-SHA256."""
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a hash
    produced by :func:`hash_password`.  Input over passlib's size cap can
    never match, so it is reported as a mismatch.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except PasswordSizeError:
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("lunchdesk-timing-equaliser")


def burn_verify(plain: str) -> None:
    """
    Spend the same time a real verification would.  Called on the
    unknown-username path so response timing does not reveal which
    usernames exist.
    """
    verify_password(plain, _dummy_hash())


# ---------------------------------------------------------------------------
# 2.  JWT – session cookie
# ---------------------------------------------------------------------------
# The cookie carries only the opaque session id and its expiry.  The session
# row in ``user_sessions`` is the source of truth: deleting it (logout)
# invalidates the cookie even though the signature stays valid.


def encode_session_token(sid: str, expires_at: datetime) -> str:
    return _jwt.encode({"sid": sid, "exp": expires_at}, settings.secret_key, algorithm="HS256")


def decode_session_token(token: str) -> str | None:
    """Return the ``sid`` claim, or None for an expired/forged/malformed token."""
    try:
        payload = _jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except _jwt.InvalidTokenError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None


# ---------------------------------------------------------------------------
# 3.  FastAPI dependency guards
# ---------------------------------------------------------------------------

session_cookie = APIKeyCookie(name=settings.session_cookie_name, auto_error=False)


def get_session_user(
    token: str | None = Depends(session_cookie),
    db=Depends(get_db),
):
    """
    Dependency for the password-change endpoint class (change-password,
    password-status, me, logout): the session must resolve to an active
    user, but a pending forced change does not block.

    Raises 401 otherwise.
    """
    # Lazy import to avoid circular dependency at module load time
    from auth.service import current_session_user  # noqa: E402

    user = current_session_user(db, token) if token else None
    enforce(evaluate_access(user, now=utc_now(), password_change_endpoint=True))
    return user


def get_current_user(user=Depends(get_session_user)):
    """
    Dependency for every other authenticated endpoint.  Adds the password
    gate: 403 PASSWORD_CHANGE_REQUIRED while a change is forced or the
    password has expired.
    """
    enforce(evaluate_access(user, now=utc_now()))
    return user


def require_admin(current_user=Depends(get_current_user)):
    """
    Dependency: wraps :func:`get_current_user` and additionally asserts the
    role is ``admin`` or ``superadmin``.  Raises 403 otherwise.
    """
    enforce(evaluate_access(current_user, now=utc_now(), admin_only=True))
    return current_user


def ensure_owner_or_admin(current_user, owner_id: int) -> None:
    """Raise 403 NOT_OWNER unless *current_user* owns the resource or is an admin."""
    enforce(evaluate_access(current_user, now=utc_now(), owner_id=owner_id))


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For first (for proxies), then falls back to the
    direct client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
