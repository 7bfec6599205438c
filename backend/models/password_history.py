# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Previous password hashes, kept only while reuse prevention is enabled."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index

from database import Base


class PasswordHistory(Base):
    __tablename__ = "password_history"
    __table_args__ = (Index("idx_password_history_user_id", "user_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    password_hash = Column(String(255), nullable=False)
    # When this hash stopped being the current password
    retired_at = Column(DateTime(timezone=True), nullable=False)
