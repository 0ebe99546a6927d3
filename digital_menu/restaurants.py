import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from . import models
from .auth import get_current_user
from .config import Settings, get_app_settings
from .db import get_db
from .errors import ConfigurationError, Forbidden, NotFound
from .schemas import MessageOut, QrInfoOut, RestaurantDetailOut, RestaurantIn, RestaurantOut, RestaurantSummaryOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/restaurants", tags=["Restaurants"])

# Helpers -------------------------------------------------

def owned_restaurant_or_404(db: Session, restaurant_id: str, user: models.User) -> models.Restaurant:
    """Missing restaurant -> 404, someone else's -> 403."""
    obj = db.get(models.Restaurant, restaurant_id)
    if not obj:
        raise NotFound("Restaurant not found")
    if obj.owner_id != user.id:
        raise Forbidden()
    return obj

# Routes --------------------------------------------------

@router.get("", response_model=List[RestaurantSummaryOut])
def list_restaurants(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    stmt = (
        select(models.Restaurant)
        .where(models.Restaurant.owner_id == user.id)
        .options(selectinload(models.Restaurant.categories))
        .order_by(models.Restaurant.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


@router.post("", response_model=RestaurantOut, status_code=status.HTTP_201_CREATED)
def create_restaurant(data: RestaurantIn, db: Session = Depends(get_db),
                      user: models.User = Depends(get_current_user)):
    obj = models.Restaurant(name=data.name, location=data.location, owner_id=user.id)
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info("Restaurant %s created by %s", obj.id, user.email)
    return obj


@router.get("/{restaurant_id}", response_model=RestaurantDetailOut)
def get_restaurant(restaurant_id: str, db: Session = Depends(get_db),
                   user: models.User = Depends(get_current_user)):
    return owned_restaurant_or_404(db, restaurant_id, user)


@router.delete("/{restaurant_id}", response_model=MessageOut)
def delete_restaurant(restaurant_id: str, db: Session = Depends(get_db),
                      user: models.User = Depends(get_current_user)):
    obj = owned_restaurant_or_404(db, restaurant_id, user)
    db.delete(obj); db.commit()
    logger.info("Restaurant %s deleted by %s", restaurant_id, user.email)
    return MessageOut(message="Restaurant deleted successfully")


@router.get("/{restaurant_id}/qr", response_model=QrInfoOut)
def qr_info(restaurant_id: str, db: Session = Depends(get_db),
            user: models.User = Depends(get_current_user),
            settings: Settings = Depends(get_app_settings)):
    obj = owned_restaurant_or_404(db, restaurant_id, user)

    if not settings.APP_URL:
        logger.error("APP_URL is not set; cannot build menu link")
        raise ConfigurationError("Application URL is not configured")

    return QrInfoOut(
        restaurant_id=obj.id,
        restaurant_name=obj.name,
        menu_url=f"{settings.APP_URL.rstrip('/')}/menu/{obj.id}",
    )
