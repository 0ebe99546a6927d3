import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .auth import get_current_user
from .db import get_db
from .errors import Forbidden, NotFound, ValidationError
from .restaurants import owned_restaurant_or_404
from .schemas import DishIn, DishOut, MessageOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dishes", tags=["Dishes"])


def _categories_of_restaurant(db: Session, restaurant_id: str, category_ids: List[str]) -> List[models.Category]:
    wanted = set(category_ids)
    rows = db.execute(
        select(models.Category).where(
            models.Category.id.in_(wanted),
            models.Category.restaurant_id == restaurant_id,
        )
    ).scalars().all()
    if len(rows) != len(wanted):
        raise ValidationError("Unknown category for this restaurant")
    return list(rows)


@router.get("", response_model=List[DishOut])
def list_dishes(restaurant_id: str = Query(..., alias="restaurantId"),
                db: Session = Depends(get_db),
                user: models.User = Depends(get_current_user)):
    owned_restaurant_or_404(db, restaurant_id, user)
    stmt = select(models.Dish).where(models.Dish.restaurant_id == restaurant_id)
    return db.execute(stmt.order_by(models.Dish.created_at)).scalars().all()


@router.post("", response_model=DishOut, status_code=status.HTTP_201_CREATED)
def create_dish(data: DishIn, db: Session = Depends(get_db),
                user: models.User = Depends(get_current_user)):
    owned_restaurant_or_404(db, data.restaurant_id, user)

    obj = models.Dish(
        name=data.name,
        description=data.description,
        image=data.image,
        spice_level=data.spice_level,
        type=data.type,
        selling_rate=data.selling_rate,
        restaurant_id=data.restaurant_id,
        categories=_categories_of_restaurant(db, data.restaurant_id, data.categories),
    )
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info("Dish %s created in restaurant %s", obj.id, data.restaurant_id)
    return obj


@router.delete("/{dish_id}", response_model=MessageOut)
def delete_dish(dish_id: str, db: Session = Depends(get_db),
                user: models.User = Depends(get_current_user)):
    obj = db.get(models.Dish, dish_id)
    if not obj:
        raise NotFound("Dish not found")
    if obj.restaurant.owner_id != user.id:
        raise Forbidden()

    db.delete(obj); db.commit()
    logger.info("Dish %s deleted by %s", dish_id, user.email)
    return MessageOut(message="Dish deleted successfully")
