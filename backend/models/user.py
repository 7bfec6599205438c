# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""User ORM model and role constants."""

from sqlalchemy import Column, Integer, String, Boolean, Enum, DateTime, Index
from sqlalchemy.sql import func

from database import Base

ROLE_EMPLOYEE = "employee"
ROLE_ADMIN = "admin"
ROLE_SUPERADMIN = "superadmin"

ROLES = (ROLE_EMPLOYEE, ROLE_ADMIN, ROLE_SUPERADMIN)
ADMIN_ROLES = frozenset({ROLE_ADMIN, ROLE_SUPERADMIN})
# Roles an admin may hand out; superadmin only comes from bootstrap
ASSIGNABLE_ROLES = frozenset({ROLE_EMPLOYEE, ROLE_ADMIN})


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("idx_users_username", "username"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(64), unique=True, nullable=False)
    # passlib pbkdf2_sha256 string; the salt is embedded in it
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default=ROLE_EMPLOYEE)
    is_active = Column(Boolean, nullable=False, default=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=False)
    password_expiry_days = Column(Integer, nullable=False, default=120)
    must_change_password = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN
