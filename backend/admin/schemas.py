# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------


class CreateUserRequest(BaseModel):
    username: str
    password: str
    role: str = "employee"  # "employee" or "admin"


class ResetPasswordRequest(BaseModel):
    # Omit to have the server generate one
    temporary_password: Optional[str] = None


class ChangeRoleRequest(BaseModel):
    role: str  # "employee" or "admin"


class PasswordExpiryRequest(BaseModel):
    days: int  # 1-365


# -- Responses -------------------------------------------------------------


class UserRow(BaseModel):
    id: int
    username: str
    role: str
    is_active: bool
    must_change_password: bool
    password_expiry_days: int
    password_changed_at: datetime
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    users: List[UserRow]


class ResetPasswordResponse(BaseModel):
    detail: str
    # Shown to the admin exactly once; it is not stored in plaintext anywhere
    temporary_password: str
    must_change_password: bool


class PasswordPolicyResponse(BaseModel):
    min_length: int
    max_length: int
    required_class_count: int
    character_classes: List[str]
    default_expiry_days: int
    warning_days: int
    prevent_reuse: int
    temp_password_length: int


# -- Audit log responses ---------------------------------------------------


class AuditLogRow(BaseModel):
    id: int
    actor_username: Optional[str] = None     # resolved from actor_id
    target_username: Optional[str] = None    # resolved from target_user_id
    action: str
    detail: Optional[str] = None
    request_ip: Optional[str] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogRow]
