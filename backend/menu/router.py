# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Menu endpoints – the daily list of dish images.

Reading the menu needs a session past the password gate; creating, editing
and deleting dishes is admin-only.  A dish record holds the path of an image
that has already been stored; upload handling is not part of this API.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from core.errors import Conflict, InvalidInput, NotFound
from core.logger import logger
from core.security import get_current_user, require_admin
from menu.schemas import DishCreate, DishListResponse, DishResponse, DishUpdate
from models.audit_log import AuditLog
from models.dish import Dish
from models.order import Order
from models.user import User

router = APIRouter(prefix="/menu", tags=["menu"])


def _get_dish(dish_id: int, db: Session) -> Dish:
    dish = db.get(Dish, dish_id)
    if dish is None:
        raise NotFound("Dish not found")
    return dish


def _clean_path(path: str) -> str:
    path = path.strip()
    if not path:
        raise InvalidInput("image_path is required")
    return path


# ---------------------------------------------------------------------------
# GET /menu/dishes  – dishes for one day
# ---------------------------------------------------------------------------


@router.get("/dishes", response_model=DishListResponse)
def list_dishes(
    menu_date: date | None = Query(None, alias="date", description="Defaults to today"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    menu_date = menu_date or date.today()
    dishes = db.query(Dish).filter(Dish.menu_date == menu_date).order_by(Dish.id).all()
    return DishListResponse(menu_date=menu_date, dishes=dishes)


# ---------------------------------------------------------------------------
# POST /menu/dishes
# ---------------------------------------------------------------------------


@router.post("/dishes", response_model=DishResponse, status_code=status.HTTP_201_CREATED)
def create_dish(
    body: DishCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    dish = Dish(image_path=_clean_path(body.image_path), menu_date=body.menu_date)
    db.add(dish)
    db.flush()
    db.add(AuditLog(actor_id=admin.id, action="create_dish", detail=f"dish_id={dish.id} date={body.menu_date}"))
    db.commit()
    db.refresh(dish)
    return dish


# ---------------------------------------------------------------------------
# PUT /menu/dishes/{id}
# ---------------------------------------------------------------------------


@router.put("/dishes/{dish_id}", response_model=DishResponse)
def update_dish(
    dish_id: int,
    body: DishUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Partial update.  A dish that already has orders keeps its ``menu_date``."""
    dish = _get_dish(dish_id, db)
    if body.menu_date is not None and body.menu_date != dish.menu_date:
        if db.query(Order.id).filter(Order.dish_id == dish_id).first() is not None:
            raise Conflict("Dish already has orders; delete it and create a new one instead")
    if body.image_path is not None:
        dish.image_path = _clean_path(body.image_path)
    if body.menu_date is not None:
        dish.menu_date = body.menu_date
    db.add(AuditLog(actor_id=admin.id, action="update_dish", detail=f"dish_id={dish_id}"))
    db.commit()
    db.refresh(dish)
    return dish


# ---------------------------------------------------------------------------
# DELETE /menu/dishes/{id}
# ---------------------------------------------------------------------------


@router.delete("/dishes/{dish_id}")
def delete_dish(
    dish_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Remove a dish together with every order placed for it."""
    dish = _get_dish(dish_id, db)
    dropped = db.query(Order).filter(Order.dish_id == dish_id).delete(synchronize_session=False)
    db.delete(dish)
    db.add(AuditLog(actor_id=admin.id, action="delete_dish", detail=f"dish_id={dish_id} orders={dropped}"))
    db.commit()
    logger.info("Dish %s deleted by admin_id=%s (%d orders dropped)", dish_id, admin.id, dropped)
    return {"detail": "Dish deleted"}
