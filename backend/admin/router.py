# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – user lifecycle, password resets and expiry, audit trail.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid session but belongs to an ``employee`` receives 403
before any business logic runs; the services re-check the role anyway.
"""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session, aliased

from database import get_db
from admin import service
from admin.schemas import (
    AuditLogListResponse,
    AuditLogRow,
    ChangeRoleRequest,
    CreateUserRequest,
    PasswordExpiryRequest,
    PasswordPolicyResponse,
    ResetPasswordRequest,
    ResetPasswordResponse,
    UserListResponse,
    UserRow,
)
from auth import credentials
from auth.schemas import PasswordStatusResponse
from auth.service import password_status
from core.password_policy import PasswordPolicy, as_utc, get_password_policy
from core.security import get_client_ip, require_admin
from models.audit_log import AuditLog
from models.user import User

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# POST /admin/users  – create a new user
# ---------------------------------------------------------------------------


@router.post("/users", response_model=UserRow, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    policy: PasswordPolicy = Depends(get_password_policy),
):
    """
    Create a user account.  The new user must change the initial password
    on first login.
    """
    return service.create_user(
        db, admin.id, body.username, body.password, body.role,
        policy=policy, request_ip=get_client_ip(request),
    )


# ---------------------------------------------------------------------------
# GET /admin/users  – list all users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Return every user row (no password data – handled by the schema)."""
    return UserListResponse(users=service.list_users(db, admin.id))


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/reset-password
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/reset-password", response_model=ResetPasswordResponse)
def reset_password(
    user_id: int,
    request: Request,
    body: ResetPasswordRequest | None = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    policy: PasswordPolicy = Depends(get_password_policy),
):
    """
    Give a user a temporary password.  The response is the only place the
    plaintext ever appears; the user must replace it on next login.
    """
    result = credentials.reset_password(
        db,
        admin.id,
        user_id,
        body.temporary_password if body else None,
        policy=policy,
        request_ip=get_client_ip(request),
    )
    return ResetPasswordResponse(
        detail="Password reset successfully",
        temporary_password=result.temporary_password,
        must_change_password=result.user.must_change_password,
    )


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/password-expiry
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/password-expiry", response_model=UserRow)
def set_password_expiry(
    user_id: int,
    body: PasswordExpiryRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Override the password expiry period (1-365 days) for one user."""
    return service.set_password_expiry_days(
        db, admin.id, user_id, body.days, request_ip=get_client_ip(request)
    )


# ---------------------------------------------------------------------------
# GET /admin/users/{id}/password-status
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/password-status", response_model=PasswordStatusResponse)
def user_password_status(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    policy: PasswordPolicy = Depends(get_password_policy),
):
    return password_status(db, user_id, policy=policy)


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/disable | enable
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/disable", response_model=UserRow)
def disable_user(
    user_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Set ``is_active = False``.  The user can no longer log in and any
    existing session is rejected by the access gate.
    """
    return service.set_active(db, admin.id, user_id, False, request_ip=get_client_ip(request))


@router.put("/users/{user_id}/enable", response_model=UserRow)
def enable_user(
    user_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Set ``is_active = True`` so the user can log in again."""
    return service.set_active(db, admin.id, user_id, True, request_ip=get_client_ip(request))


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/role
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/role", response_model=UserRow)
def change_role(
    user_id: int,
    body: ChangeRoleRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Promote or demote a user between ``employee`` and ``admin``."""
    return service.change_role(db, admin.id, user_id, body.role, request_ip=get_client_ip(request))


# ---------------------------------------------------------------------------
# DELETE /admin/users/{id}
# ---------------------------------------------------------------------------


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    service.delete_user(db, admin.id, user_id, request_ip=get_client_ip(request))
    return {"detail": "User deleted successfully"}


# ---------------------------------------------------------------------------
# GET /admin/password-policy  – read-only view of the active policy
# ---------------------------------------------------------------------------


@router.get("/password-policy", response_model=PasswordPolicyResponse)
def get_policy(
    admin: User = Depends(require_admin),
    policy: PasswordPolicy = Depends(get_password_policy),
):
    """The policy is loaded from configuration at startup and cannot be edited here."""
    data = asdict(policy)
    data["character_classes"] = list(policy.character_classes)
    return PasswordPolicyResponse(**data)


# ---------------------------------------------------------------------------
# GET /admin/audit-logs  – audit trail with optional filters
# ---------------------------------------------------------------------------


@router.get("/audit-logs", response_model=AuditLogListResponse)
def list_audit_logs(
    usernames: list[str] | None = Query(None, description="Filter by exact username(s) – repeated param"),
    since: datetime | None = Query(None, description="ISO-8601 start of time window"),
    until: datetime | None = Query(None, description="ISO-8601 end of time window"),
    limit: int = Query(200, ge=1, le=1000),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Return audit log rows newest-first.  Supports optional filters:

    * ``usernames`` – match rows where *either* the actor or the target is
                      one of them.
    * ``since`` / ``until`` – ISO-8601 bounds on ``created_at``; naive
                            values are taken as UTC.
    * ``limit`` – max rows returned (default 200, cap 1000).
    """
    Actor = aliased(User)
    Target = aliased(User)

    q = (
        db.query(AuditLog, Actor.username, Target.username)
        .outerjoin(Actor, AuditLog.actor_id == Actor.id)
        .outerjoin(Target, AuditLog.target_user_id == Target.id)
    )

    if usernames:
        q = q.filter(Actor.username.in_(usernames) | Target.username.in_(usernames))
    # Timestamps are stored in UTC; bring offset or naive bounds onto it
    if since:
        q = q.filter(AuditLog.created_at >= as_utc(since))
    if until:
        q = q.filter(AuditLog.created_at <= as_utc(until))

    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

    return AuditLogListResponse(logs=[
        AuditLogRow(
            id=log.id,
            actor_username=actor_name,
            target_username=target_name,
            action=log.action,
            detail=log.detail,
            request_ip=log.request_ip,
            created_at=log.created_at,
        )
        for log, actor_name, target_name in rows
    ])
