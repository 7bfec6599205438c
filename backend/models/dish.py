# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Dish ORM model – one menu image for one day."""

from sqlalchemy import Column, Integer, String, Date, DateTime, Index
from sqlalchemy.sql import func

from database import Base


class Dish(Base):
    __tablename__ = "dishes"
    __table_args__ = (Index("idx_dishes_menu_date", "menu_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Path or URL of the already-stored image; upload handling lives elsewhere
    image_path = Column(String(500), nullable=False)
    menu_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
