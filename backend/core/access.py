# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Access gate – the per-request authorization decision.

A request moves through three checks in a fixed order:

    unauthenticated  →  authenticated (password valid)  →  authorized

1. No session, unknown user or disabled user      → NOT_AUTHENTICATED
2. Forced change pending or password expired      → PASSWORD_CHANGE_REQUIRED
   (skipped for the password-change endpoint class)
3. Admin-only resource and role is not admin      → INSUFFICIENT_ROLE
   Resource owned by another user and not admin   → NOT_OWNER

:func:`evaluate_access` is pure; :func:`enforce` turns a denial into the
matching error from core.errors.  The FastAPI guards in core/security.py are
thin wrappers around the two.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core import password_policy
from core.errors import (
    InsufficientRole,
    NotAuthenticated,
    NotOwner,
    PasswordChangeRequired,
)
from models.user import ADMIN_ROLES


class DenyReason(str, enum.Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    PASSWORD_CHANGE_REQUIRED = "password_change_required"
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_OWNER = "not_owner"


@dataclass(frozen=True)
class AccessDecision:
    reason: Optional[DenyReason] = None

    @property
    def allowed(self) -> bool:
        return self.reason is None


AUTHORIZED = AccessDecision()


def user_requires_change(user, now: datetime) -> bool:
    expired = password_policy.is_expired(user.password_changed_at, user.password_expiry_days, now)
    return password_policy.requires_change(user.must_change_password, expired)


def evaluate_access(
    user,
    *,
    now: datetime,
    password_change_endpoint: bool = False,
    admin_only: bool = False,
    owner_id: Optional[int] = None,
) -> AccessDecision:
    if user is None or not user.is_active:
        return AccessDecision(DenyReason.NOT_AUTHENTICATED)

    if not password_change_endpoint and user_requires_change(user, now):
        return AccessDecision(DenyReason.PASSWORD_CHANGE_REQUIRED)

    is_admin = user.role in ADMIN_ROLES
    if admin_only and not is_admin:
        return AccessDecision(DenyReason.INSUFFICIENT_ROLE)
    if owner_id is not None and owner_id != user.id and not is_admin:
        return AccessDecision(DenyReason.NOT_OWNER)

    return AUTHORIZED


_DENIALS = {
    DenyReason.NOT_AUTHENTICATED: NotAuthenticated,
    DenyReason.PASSWORD_CHANGE_REQUIRED: PasswordChangeRequired,
    DenyReason.INSUFFICIENT_ROLE: InsufficientRole,
    DenyReason.NOT_OWNER: NotOwner,
}


def enforce(decision: AccessDecision) -> None:
    if not decision.allowed:
        raise _DENIALS[decision.reason]()
