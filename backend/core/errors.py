# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Domain errors raised by services and auth guards.

Each class carries the HTTP status and machine-readable ``code`` that the
handler in main.py puts on the wire, so routers never translate errors by
hand.  Storage failures are not modelled here: they surface as
SQLAlchemyError and are reported as a generic 500.
"""

from typing import Optional


class AppError(Exception):
    status_code = 400
    code = "BAD_REQUEST"
    default_detail = "Bad request"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


# -- 401 -----------------------------------------------------------------


class NotAuthenticated(AppError):
    status_code = 401
    code = "NOT_AUTHENTICATED"
    default_detail = "Not authenticated"


class InvalidCredentials(NotAuthenticated):
    # Same message whether the username exists or not
    code = "INVALID_CREDENTIALS"
    default_detail = "Invalid username or password"


class AccountDisabled(NotAuthenticated):
    code = "ACCOUNT_DISABLED"
    default_detail = "Account disabled"


# -- 403 -----------------------------------------------------------------


class PasswordChangeRequired(AppError):
    status_code = 403
    code = "PASSWORD_CHANGE_REQUIRED"
    default_detail = "Password change required"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_detail = "Forbidden"


class InsufficientRole(Forbidden):
    code = "INSUFFICIENT_ROLE"
    default_detail = "Admin access required"


class NotOwner(Forbidden):
    code = "NOT_OWNER"
    default_detail = "Access to another user's resource denied"


# -- 400 / 404 / 409 -----------------------------------------------------


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_detail = "Not found"


class WrongCurrentPassword(AppError):
    code = "WRONG_CURRENT_PASSWORD"
    default_detail = "Current password is incorrect"


class PolicyViolation(AppError):
    """New password rejected by the format policy; ``reasons`` lists why."""

    code = "POLICY_VIOLATION"
    default_detail = "Password does not meet the password policy"

    def __init__(self, reasons: list[str], detail: Optional[str] = None):
        self.reasons = list(reasons)
        super().__init__(detail)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["reasons"] = self.reasons
        return body


class InvalidInput(AppError):
    code = "INVALID_INPUT"
    default_detail = "Invalid input"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    default_detail = "Conflicting update"
