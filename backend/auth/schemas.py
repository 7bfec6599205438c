# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------


class LoginRequest(BaseModel):
    username: str
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# -- Responses -------------------------------------------------------------


class PasswordStatusResponse(BaseModel):
    must_change_password: bool
    is_expired: bool
    days_until_expiry: int
    password_expiry_days: int
    expires_at: datetime
    show_warning: bool
    requires_change: bool

    model_config = {"from_attributes": True}


class UserInfoResponse(BaseModel):
    id: int
    username: str
    role: str
    is_active: bool
    must_change_password: bool
    password_expiry_days: int
    last_login_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    user: UserInfoResponse
    password_status: PasswordStatusResponse
