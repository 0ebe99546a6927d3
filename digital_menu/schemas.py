from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, TypeAdapter, constr, field_validator

_HTTP_URL = TypeAdapter(HttpUrl)

# Wire format is camelCase; attributes stay snake_case through field aliases.
ORM_CONFIG = {
    "from_attributes": True,
    "populate_by_name": True,
}


# auth

class RegisterIn(BaseModel):
    email: EmailStr
    full_name: constr(min_length=2, max_length=100) = Field(alias="fullName")
    country: constr(min_length=2, max_length=100)

    model_config = {"populate_by_name": True}


class VerifyCodeIn(BaseModel):
    email: EmailStr
    # compared byte-for-byte with the stored code, no stripping
    code: constr(min_length=6, max_length=6)


class AuthOut(BaseModel):
    message: str
    user_id: str = Field(alias="userId")

    model_config = {"populate_by_name": True}


class MessageOut(BaseModel):
    message: str


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str = Field(alias="fullName")
    country: str
    is_verified: bool = Field(alias="isVerified")

    model_config = ORM_CONFIG


# restaurant

class RestaurantIn(BaseModel):
    name: constr(min_length=2, max_length=100)
    location: constr(min_length=2, max_length=255)


class RestaurantOut(BaseModel):
    id: str
    name: str
    location: str
    owner_id: str = Field(alias="ownerId")
    created_at: datetime = Field(alias="createdAt")

    model_config = ORM_CONFIG


# category

class CategoryIn(BaseModel):
    name: constr(min_length=2, max_length=100)
    restaurant_id: str = Field(alias="restaurantId")

    model_config = {"populate_by_name": True}


class CategoryOut(BaseModel):
    id: str
    name: str
    restaurant_id: str = Field(alias="restaurantId")
    created_at: datetime = Field(alias="createdAt")

    model_config = ORM_CONFIG


# dish

class DishIn(BaseModel):
    name: constr(min_length=2, max_length=100)
    description: constr(min_length=10)
    # checked as a URL but stored exactly as sent
    image: constr(max_length=500)
    spice_level: Optional[int] = Field(default=None, ge=0, le=5, alias="spiceLevel")
    categories: List[str] = Field(min_length=1)
    type: Literal["veg", "non-veg"] = "veg"
    selling_rate: float = Field(ge=1, alias="sellingRate")
    restaurant_id: str = Field(alias="restaurantId")

    model_config = {"populate_by_name": True}

    @field_validator("image")
    @classmethod
    def _image_is_http_url(cls, v):
        try:
            _HTTP_URL.validate_python(v)
        except ValueError:
            raise ValueError("image must be an http(s) URL") from None
        return v


class DishOut(BaseModel):
    id: str
    name: str
    description: str
    image: str
    spice_level: Optional[int] = Field(default=None, alias="spiceLevel")
    type: str
    selling_rate: float = Field(alias="sellingRate")
    restaurant_id: str = Field(alias="restaurantId")
    category_ids: List[str] = Field(default_factory=list, alias="categoryIds")

    model_config = ORM_CONFIG


class CategoryWithDishesOut(CategoryOut):
    dishes: List[DishOut] = []


class RestaurantSummaryOut(RestaurantOut):
    categories: List[CategoryOut] = []


class RestaurantDetailOut(RestaurantOut):
    categories: List[CategoryWithDishesOut] = []
    dishes: List[DishOut] = []


class QrInfoOut(BaseModel):
    restaurant_id: str = Field(alias="restaurantId")
    restaurant_name: str = Field(alias="restaurantName")
    menu_url: str = Field(alias="menuUrl")
    # image is rendered client side
    qr_code_data_url: Optional[str] = Field(default=None, alias="qrCodeDataUrl")

    model_config = {"populate_by_name": True}


# public menu

class PublicRestaurantOut(BaseModel):
    id: str
    name: str
    location: str

    model_config = ORM_CONFIG


class PublicCategoryOut(BaseModel):
    id: str
    name: str

    model_config = ORM_CONFIG


class PublicMenuOut(BaseModel):
    restaurant: PublicRestaurantOut
    categories: List[PublicCategoryOut]
    dishes: List[DishOut]
