# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – login, logout, password change, current-user info.

Everything except login sits behind ``get_session_user``: these are the
only endpoints a user can reach while a password change is forced or their
password has expired.

Security notes
--------------
* Login returns the *same* error whether the username doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* change-password verifies the current password before accepting the new
  one, so a stolen session cookie alone cannot take over the account.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from database import get_db
from auth import credentials, service
from auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    PasswordStatusResponse,
    UserInfoResponse,
)
from core.config import settings
from core.password_policy import PasswordPolicy, get_password_policy, utc_now
from core.security import get_client_ip, get_session_user, session_cookie
from models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    policy: PasswordPolicy = Depends(get_password_policy),
):
    """Authenticate, open a server-side session and set the session cookie."""
    now = utc_now()
    user = service.authenticate(db, body.username, body.password, request_ip=get_client_ip(request), now=now)
    token = service.create_session(db, user, now=now)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return LoginResponse(
        user=UserInfoResponse.model_validate(user),
        password_status=PasswordStatusResponse.model_validate(service.status_for(user, policy, now)),
    )


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout")
def logout(
    response: Response,
    token: str | None = Depends(session_cookie),
    current_user: User = Depends(get_session_user),
    db: Session = Depends(get_db),
):
    """Destroy the server-side session and clear the cookie."""
    service.destroy_session(db, token)
    response.delete_cookie(settings.session_cookie_name)
    return {"detail": "Logout successful"}


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserInfoResponse)
def me(current_user: User = Depends(get_session_user)):
    """Return the authenticated user's public profile (no secrets)."""
    return current_user


# ---------------------------------------------------------------------------
# GET /auth/password-status
# ---------------------------------------------------------------------------


@router.get("/password-status", response_model=PasswordStatusResponse)
def password_status(
    current_user: User = Depends(get_session_user),
    policy: PasswordPolicy = Depends(get_password_policy),
):
    """Expiry / forced-change state for the banner and the change-password page."""
    return service.status_for(current_user, policy, utc_now())


# ---------------------------------------------------------------------------
# PUT /auth/change-password
# ---------------------------------------------------------------------------


@router.put("/change-password", response_model=PasswordStatusResponse)
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    current_user: User = Depends(get_session_user),
    db: Session = Depends(get_db),
    policy: PasswordPolicy = Depends(get_password_policy),
):
    """
    Change the authenticated user's password.  Also clears the forced-change
    flag and restarts the expiry clock.
    """
    now = utc_now()
    user = credentials.change_password(
        db,
        current_user.id,
        body.current_password,
        body.new_password,
        policy=policy,
        now=now,
        request_ip=get_client_ip(request),
    )
    return service.status_for(user, policy, now)
