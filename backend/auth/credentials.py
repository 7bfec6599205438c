# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Credential mutation – the only code that writes password fields.

* :func:`change_password` – self-service; needs the current password and
  clears ``must_change_password``.
* :func:`reset_password` – administrative; no current password, always
  sets ``must_change_password``.

Every write is a compare-and-swap on ``password_hash``: the UPDATE only
matches if the hash is still the one read at the start of the operation,
so a concurrent reset and self-service change cannot silently overwrite
each other.  Plaintext passwords never reach the log or the audit trail.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from auth.service import get_user, load_admin
from core.errors import Conflict, Forbidden, PolicyViolation, WrongCurrentPassword
from core.logger import logger
from core.password_policy import REASON_REUSED, PasswordPolicy, utc_now
from core.security import hash_password, verify_password
from models.audit_log import AuditLog
from models.password_history import PasswordHistory
from models.user import User


@dataclass
class ResetResult:
    user: User
    # Returned to the caller once; not retrievable afterwards
    temporary_password: str
    generated: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_reused(db: Session, user: User, new_password: str, policy: PasswordPolicy) -> bool:
    """True if *new_password* matches the current or a remembered password."""
    if policy.prevent_reuse < 1:
        return False
    if verify_password(new_password, user.password_hash):
        return True
    remembered = policy.prevent_reuse - 1
    if remembered < 1:
        return False
    rows = (
        db.query(PasswordHistory.password_hash)
        .filter(PasswordHistory.user_id == user.id)
        .order_by(PasswordHistory.retired_at.desc(), PasswordHistory.id.desc())
        .limit(remembered)
        .all()
    )
    return any(verify_password(new_password, row.password_hash) for row in rows)


def _remember(db: Session, user_id: int, old_hash: str, policy: PasswordPolicy, now: datetime) -> None:
    remembered = policy.prevent_reuse - 1
    if remembered < 1:
        return
    db.add(PasswordHistory(user_id=user_id, password_hash=old_hash, retired_at=now))
    db.flush()
    stale = (
        db.query(PasswordHistory.id)
        .filter(PasswordHistory.user_id == user_id)
        .order_by(PasswordHistory.retired_at.desc(), PasswordHistory.id.desc())
        .offset(remembered)
        .all()
    )
    if stale:
        db.query(PasswordHistory).filter(
            PasswordHistory.id.in_([row.id for row in stale])
        ).delete(synchronize_session=False)


def _swap_password(
    db: Session,
    user: User,
    expected_hash: str,
    new_hash: str,
    *,
    must_change: bool,
    now: datetime,
) -> bool:
    """Single-row compare-and-swap.  False means another writer got there first."""
    updated = (
        db.query(User)
        .filter(User.id == user.id, User.password_hash == expected_hash)
        .update(
            {
                User.password_hash: new_hash,
                User.password_changed_at: now,
                User.must_change_password: must_change,
            },
            synchronize_session=False,
        )
    )
    return updated == 1


# ---------------------------------------------------------------------------
# Self-service change
# ---------------------------------------------------------------------------


def change_password(
    db: Session,
    user_id: int,
    current_password: str,
    new_password: str,
    *,
    policy: PasswordPolicy,
    now: Optional[datetime] = None,
    request_ip: Optional[str] = None,
) -> User:
    """
    Verify *current_password*, validate *new_password* against the policy,
    then store it, stamp ``password_changed_at`` and clear the forced-change
    flag.  Nothing is written unless every check passes.
    """
    now = now or utc_now()
    user = get_user(db, user_id)
    expected_hash = user.password_hash

    if not verify_password(current_password, expected_hash):
        raise WrongCurrentPassword()

    reasons = policy.violations(new_password)
    if _is_reused(db, user, new_password, policy):
        reasons.append(REASON_REUSED)
    if reasons:
        raise PolicyViolation(reasons, detail=policy.describe())

    if not _swap_password(db, user, expected_hash, hash_password(new_password), must_change=False, now=now):
        # The hash moved under us (e.g. an admin reset): the current
        # password the caller proved is no longer current.
        db.rollback()
        raise WrongCurrentPassword()

    _remember(db, user_id, expected_hash, policy, now)
    db.add(AuditLog(actor_id=user_id, target_user_id=user_id, action="change_password", request_ip=request_ip))
    db.commit()
    logger.info("Password changed for user_id=%s", user_id)

    db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Administrative reset
# ---------------------------------------------------------------------------


def reset_password(
    db: Session,
    admin_id: int,
    target_id: int,
    temporary_password: Optional[str] = None,
    *,
    policy: PasswordPolicy,
    now: Optional[datetime] = None,
    request_ip: Optional[str] = None,
) -> ResetResult:
    """
    Overwrite *target_id*'s password with a temporary one and force a change
    on next use.  A temporary password is generated when none is supplied;
    a supplied one must satisfy the same policy as a self-service change.

    Guard: only a superadmin may reset a superadmin's password.
    """
    now = now or utc_now()
    admin = load_admin(db, admin_id)
    target = get_user(db, target_id)

    if target.is_superadmin and not admin.is_superadmin:
        raise Forbidden("Cannot reset the super admin password")

    generated = temporary_password is None
    if generated:
        temporary_password = policy.generate_temporary_password()
    else:
        policy.check(temporary_password)

    expected_hash = target.password_hash
    if not _swap_password(db, target, expected_hash, hash_password(temporary_password), must_change=True, now=now):
        db.rollback()
        raise Conflict("Password was changed concurrently, retry the reset")

    _remember(db, target_id, expected_hash, policy, now)
    db.add(AuditLog(
        actor_id=admin_id,
        target_user_id=target_id,
        action="reset_password",
        detail="generated" if generated else "supplied",
        request_ip=request_ip,
    ))
    db.commit()
    logger.info("Password reset for user_id=%s by admin_id=%s", target_id, admin_id)

    db.refresh(target)
    return ResetResult(user=target, temporary_password=temporary_password, generated=generated)
