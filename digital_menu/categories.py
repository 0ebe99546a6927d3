import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .auth import get_current_user
from .db import get_db
from .errors import Forbidden, NotFound
from .restaurants import owned_restaurant_or_404
from .schemas import CategoryIn, CategoryOut, CategoryWithDishesOut, MessageOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryWithDishesOut])
def list_categories(restaurant_id: str = Query(..., alias="restaurantId"),
                    db: Session = Depends(get_db),
                    user: models.User = Depends(get_current_user)):
    owned_restaurant_or_404(db, restaurant_id, user)
    stmt = select(models.Category).where(models.Category.restaurant_id == restaurant_id)
    return db.execute(stmt.order_by(models.Category.created_at)).scalars().all()


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(data: CategoryIn, db: Session = Depends(get_db),
                    user: models.User = Depends(get_current_user)):
    owned_restaurant_or_404(db, data.restaurant_id, user)
    obj = models.Category(name=data.name, restaurant_id=data.restaurant_id)
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info("Category %s created in restaurant %s", obj.id, data.restaurant_id)
    return obj


@router.delete("/{category_id}", response_model=MessageOut)
def delete_category(category_id: str, db: Session = Depends(get_db),
                    user: models.User = Depends(get_current_user)):
    obj = db.get(models.Category, category_id)
    if not obj:
        raise NotFound("Category not found")
    if obj.restaurant.owner_id != user.id:
        raise Forbidden()

    db.delete(obj); db.commit()
    logger.info("Category %s deleted by %s", category_id, user.email)
    return MessageOut(message="Category deleted successfully")
