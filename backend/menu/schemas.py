# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the menu endpoints."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel


class DishCreate(BaseModel):
    image_path: str
    menu_date: date


class DishUpdate(BaseModel):
    """Partial update – only supplied fields change."""

    image_path: Optional[str] = None
    menu_date: Optional[date] = None


class DishResponse(BaseModel):
    id: int
    image_path: str
    menu_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class DishListResponse(BaseModel):
    menu_date: date
    dishes: List[DishResponse]
