# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Order ORM model – one row per (user, dish, day)."""

from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from database import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_user_date", "user_id", "order_date"),
        Index("idx_orders_dish_id", "dish_id"),
        Index("idx_orders_order_date", "order_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Cascade delete: removing a user removes their orders
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    dish_id = Column(
        Integer,
        ForeignKey("dishes.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity = Column(Integer, nullable=False, default=1)
    order_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
