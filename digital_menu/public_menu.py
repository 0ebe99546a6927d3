from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .db import get_db
from .errors import NotFound
from .schemas import PublicMenuOut

router = APIRouter(prefix="/public", tags=["Public"])


# no session required: this is what the QR code points at
@router.get("/menu/{restaurant_id}", response_model=PublicMenuOut)
def public_menu(restaurant_id: str, db: Session = Depends(get_db)):
    restaurant = db.get(models.Restaurant, restaurant_id)
    if not restaurant:
        raise NotFound("Restaurant not found")

    categories = db.execute(
        select(models.Category)
        .where(models.Category.restaurant_id == restaurant_id)
        .order_by(models.Category.created_at)
    ).scalars().all()
    dishes = db.execute(
        select(models.Dish)
        .where(models.Dish.restaurant_id == restaurant_id)
        .order_by(models.Dish.created_at)
    ).scalars().all()

    return {"restaurant": restaurant, "categories": categories, "dishes": dishes}
