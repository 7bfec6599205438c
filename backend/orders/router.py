# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Order endpoints – each user keeps one order per day.

Invariants enforced by every handler
------------------------------------
* A session past the password gate is required (``get_current_user``).
* Placing an order *replaces* the caller's order for that day: the old rows
  are deleted and the new ones inserted in the same transaction.
* Another user's orders are readable only by that user or an admin
  (``ensure_owner_or_admin``).
"""

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from core.errors import InvalidInput
from core.security import ensure_owner_or_admin, get_current_user, require_admin
from models.dish import Dish
from models.order import Order
from models.user import User
from orders.schemas import (
    DishTotal,
    OrderListResponse,
    OrderSummaryResponse,
    PlaceOrderRequest,
    UserOrderLine,
)

router = APIRouter(prefix="/orders", tags=["orders"])

_DATE_QUERY = Query(None, alias="date", description="Defaults to today")


def _orders_for(db: Session, user_id: int, order_date: date) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user_id, Order.order_date == order_date)
        .order_by(Order.id)
        .all()
    )


# ---------------------------------------------------------------------------
# GET /orders  – own order for a day, or the whole history
# ---------------------------------------------------------------------------


@router.get("", response_model=OrderListResponse)
def my_orders(
    order_date: date | None = Query(None, alias="date", description="Omit for the whole history"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's order for ``date``; without it, every order, oldest day first."""
    if order_date is not None:
        return OrderListResponse(order_date=order_date, orders=_orders_for(db, current_user.id, order_date))

    history = (
        db.query(Order)
        .filter(Order.user_id == current_user.id)
        .order_by(Order.order_date, Order.id)
        .all()
    )
    return OrderListResponse(order_date=None, orders=history)


# ---------------------------------------------------------------------------
# PUT /orders  – replace own order for a day
# ---------------------------------------------------------------------------


@router.put("", response_model=OrderListResponse)
def place_order(
    body: PlaceOrderRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Replace the caller's order for ``order_date``.  Every dish must be on
    that day's menu; nothing is written if any of them is not.
    """
    if not body.dish_ids:
        raise InvalidInput("At least one dish must be selected")

    order_date = body.order_date or date.today()
    on_menu = {
        dish_id
        for (dish_id,) in db.query(Dish.id).filter(Dish.menu_date == order_date).all()
    }
    missing = sorted(set(body.dish_ids) - on_menu)
    if missing:
        raise InvalidInput(f"Dish with ID {missing[0]} is not on the menu for {order_date}")

    db.query(Order).filter(
        Order.user_id == current_user.id, Order.order_date == order_date
    ).delete(synchronize_session=False)

    for dish_id, quantity in Counter(body.dish_ids).items():
        db.add(Order(user_id=current_user.id, dish_id=dish_id, quantity=quantity, order_date=order_date))
    db.commit()

    return OrderListResponse(order_date=order_date, orders=_orders_for(db, current_user.id, order_date))


# ---------------------------------------------------------------------------
# DELETE /orders  – clear own order for a day
# ---------------------------------------------------------------------------


@router.delete("", status_code=status.HTTP_200_OK)
def clear_order(
    order_date: date | None = _DATE_QUERY,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order_date = order_date or date.today()
    removed = db.query(Order).filter(
        Order.user_id == current_user.id, Order.order_date == order_date
    ).delete(synchronize_session=False)
    db.commit()
    return {"detail": "Order cleared", "removed": removed}


# ---------------------------------------------------------------------------
# GET /orders/summary  – kitchen view for a day (admin)
# ---------------------------------------------------------------------------


@router.get("/summary", response_model=OrderSummaryResponse)
def order_summary(
    order_date: date | None = _DATE_QUERY,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Totals per dish plus one line per (user, dish) for ``order_date``."""
    order_date = order_date or date.today()

    totals = (
        db.query(Dish.id, Dish.image_path, func.sum(Order.quantity))
        .join(Order, Order.dish_id == Dish.id)
        .filter(Order.order_date == order_date)
        .group_by(Dish.id, Dish.image_path)
        .order_by(Dish.id)
        .all()
    )
    lines = (
        db.query(User.id, User.username, Order.dish_id, Order.quantity)
        .join(Order, Order.user_id == User.id)
        .filter(Order.order_date == order_date)
        .order_by(User.username, Order.dish_id)
        .all()
    )

    return OrderSummaryResponse(
        order_date=order_date,
        dishes=[
            DishTotal(dish_id=dish_id, image_path=path, total_quantity=int(total or 0))
            for dish_id, path, total in totals
        ],
        lines=[
            UserOrderLine(user_id=user_id, username=username, dish_id=dish_id, quantity=quantity)
            for user_id, username, dish_id, quantity in lines
        ],
    )


# ---------------------------------------------------------------------------
# GET /orders/users/{user_id}  – one user's order (owner or admin)
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}", response_model=OrderListResponse)
def user_orders(
    user_id: int,
    order_date: date | None = _DATE_QUERY,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_owner_or_admin(current_user, user_id)
    order_date = order_date or date.today()
    return OrderListResponse(order_date=order_date, orders=_orders_for(db, user_id, order_date))
