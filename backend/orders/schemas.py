# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the order endpoints."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel


class PlaceOrderRequest(BaseModel):
    # Defaults to today.  Repeating a dish id orders it more than once.
    order_date: Optional[date] = None
    dish_ids: List[int]


class OrderResponse(BaseModel):
    id: int
    user_id: int
    dish_id: int
    quantity: int
    order_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class OrderListResponse(BaseModel):
    order_date: Optional[date] = None  # None when listing the whole history
    orders: List[OrderResponse]


# -- Admin summary ---------------------------------------------------------


class DishTotal(BaseModel):
    dish_id: int
    image_path: str
    total_quantity: int


class UserOrderLine(BaseModel):
    user_id: int
    username: str
    dish_id: int
    quantity: int


class OrderSummaryResponse(BaseModel):
    order_date: date
    dishes: List[DishTotal]
    lines: List[UserOrderLine]
