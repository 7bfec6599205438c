# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
User lifecycle services used by the admin router and the bootstrap script.

Every operation takes the acting user's id and re-checks the admin role, so
the services stay safe when called outside the HTTP guards.

Protected-account rules (all fail with 403, never a silent no-op)
-----------------------------------------------------------------
* The superadmin account cannot be disabled, deleted or re-roled.
* Nobody can disable, delete or re-role their own account.
* The ``superadmin`` role cannot be granted through these services.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from auth.service import get_user, load_admin
from core.errors import Conflict, Forbidden, InvalidInput
from core.logger import logger
from core.password_policy import PasswordPolicy, utc_now
from core.security import hash_password
from models.audit_log import AuditLog
from models.order import Order
from models.password_history import PasswordHistory
from models.session import UserSession
from models.user import ASSIGNABLE_ROLES, ROLE_SUPERADMIN, User

EXPIRY_DAYS_MIN = 1
EXPIRY_DAYS_MAX = 365


def _audit(db: Session, actor_id: Optional[int], target_id: Optional[int], action: str,
           detail: Optional[str] = None, request_ip: Optional[str] = None) -> None:
    db.add(AuditLog(
        actor_id=actor_id,
        target_user_id=target_id,
        action=action,
        detail=detail,
        request_ip=request_ip,
    ))


def _check_role(role: str) -> None:
    if role == ROLE_SUPERADMIN:
        raise Forbidden("The superadmin role cannot be assigned")
    if role not in ASSIGNABLE_ROLES:
        raise InvalidInput("Invalid role. Must be 'employee' or 'admin'")


# ---------------------------------------------------------------------------
# Create / list
# ---------------------------------------------------------------------------


def create_user(
    db: Session,
    actor_id: int,
    username: str,
    password: str,
    role: str,
    *,
    policy: PasswordPolicy,
    now: Optional[datetime] = None,
    request_ip: Optional[str] = None,
) -> User:
    """
    Create an account.  The new user starts with ``must_change_password``
    set so they pick their own password on first login.
    """
    load_admin(db, actor_id)
    _check_role(role)

    username = username.strip()
    if not username:
        raise InvalidInput("Username is required")
    if db.query(User).filter(User.username == username).first():
        raise Conflict("Username already exists")

    policy.check(password)

    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        password_changed_at=now or utc_now(),
        password_expiry_days=policy.default_expiry_days,
        must_change_password=True,
    )
    db.add(user)
    db.flush()  # get user.id before commit
    _audit(db, actor_id, user.id, "create_user", f"role={role}", request_ip)
    db.commit()
    db.refresh(user)
    logger.info("User %s created by admin_id=%s", user.id, actor_id)
    return user


def list_users(db: Session, actor_id: int) -> list[User]:
    load_admin(db, actor_id)
    return db.query(User).order_by(User.id).all()


# ---------------------------------------------------------------------------
# Activation / role / delete
# ---------------------------------------------------------------------------


def set_active(
    db: Session,
    actor_id: int,
    target_id: int,
    active: bool,
    *,
    request_ip: Optional[str] = None,
) -> User:
    load_admin(db, actor_id)
    target = get_user(db, target_id)

    if not active:
        if target.is_superadmin:
            raise Forbidden("Cannot disable the super admin")
        if target.id == actor_id:
            raise Forbidden("Cannot disable yourself")

    target.is_active = active
    _audit(db, actor_id, target_id, "enable_user" if active else "disable_user", request_ip=request_ip)
    db.commit()
    db.refresh(target)
    return target


def change_role(
    db: Session,
    actor_id: int,
    target_id: int,
    role: str,
    *,
    request_ip: Optional[str] = None,
) -> User:
    load_admin(db, actor_id)
    _check_role(role)
    if target_id == actor_id:
        raise Forbidden("Cannot change your own role")

    target = get_user(db, target_id)
    if target.is_superadmin:
        raise Forbidden("Cannot change the super admin role")

    target.role = role
    _audit(db, actor_id, target_id, "change_role", f"new_role={role}", request_ip)
    db.commit()
    db.refresh(target)
    return target


def delete_user(
    db: Session,
    actor_id: int,
    target_id: int,
    *,
    request_ip: Optional[str] = None,
) -> None:
    """Hard-delete a user together with their sessions, orders and history."""
    load_admin(db, actor_id)
    target = get_user(db, target_id)

    if target.is_superadmin:
        raise Forbidden("Cannot delete super admin")
    if target.id == actor_id:
        raise Forbidden("Cannot delete yourself")

    # Explicit deletes: SQLite does not enforce ON DELETE CASCADE by default
    db.query(UserSession).filter(UserSession.user_id == target_id).delete(synchronize_session=False)
    db.query(Order).filter(Order.user_id == target_id).delete(synchronize_session=False)
    db.query(PasswordHistory).filter(PasswordHistory.user_id == target_id).delete(synchronize_session=False)
    _audit(db, actor_id, None, "delete_user", f"username={target.username}", request_ip)
    db.delete(target)
    db.commit()
    logger.info("User %s deleted by admin_id=%s", target_id, actor_id)


# ---------------------------------------------------------------------------
# Password expiry
# ---------------------------------------------------------------------------


def set_password_expiry_days(
    db: Session,
    actor_id: int,
    target_id: int,
    days: int,
    *,
    request_ip: Optional[str] = None,
) -> User:
    """Override the expiry period for one user.  *days* must be in [1, 365]."""
    load_admin(db, actor_id)
    if not EXPIRY_DAYS_MIN <= days <= EXPIRY_DAYS_MAX:
        raise InvalidInput(f"Password expiry must be between {EXPIRY_DAYS_MIN} and {EXPIRY_DAYS_MAX} days")

    target = get_user(db, target_id)
    target.password_expiry_days = days
    _audit(db, actor_id, target_id, "set_password_expiry", f"days={days}", request_ip)
    db.commit()
    db.refresh(target)
    return target


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


def bootstrap_superadmin(
    db: Session,
    username: str,
    password: str,
    *,
    policy: PasswordPolicy,
    now: Optional[datetime] = None,
) -> Optional[User]:
    """
    Create the protected superadmin account if no user by that name exists.
    Returns the new user, or None when it was already there.  The account
    starts with a forced password change like every other new account.
    """
    if db.query(User).filter(User.username == username).first():
        return None

    policy.check(password)
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=ROLE_SUPERADMIN,
        is_active=True,
        password_changed_at=now or utc_now(),
        password_expiry_days=policy.default_expiry_days,
        must_change_password=True,
    )
    db.add(user)
    db.flush()
    _audit(db, None, user.id, "bootstrap_superadmin")
    db.commit()
    db.refresh(user)
    return user
