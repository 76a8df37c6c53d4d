"""
Request body schemas. JSON keys are camelCase; Python attributes snake_case.
"""
from typing import Annotated, Optional

from flask import request
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from storefront.errors import ValidationError
from storefront.models import MAX_INTEGER, MAX_PRICE

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PositiveInt = Annotated[int, Field(strict=True, ge=1, le=MAX_INTEGER)]
NonNegativeInt = Annotated[int, Field(strict=True, ge=0, le=MAX_INTEGER)]
Identifier = Annotated[int, Field(strict=True, le=MAX_INTEGER)]
Price = Annotated[float, Field(ge=0, le=float(MAX_PRICE), allow_inf_nan=False)]


class RequestSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Credentials(RequestSchema):
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=50)]
    password: Annotated[str, StringConstraints(min_length=6, max_length=128)]


class LoginRequest(RequestSchema):
    username: NonEmptyStr
    password: Annotated[str, StringConstraints(min_length=1)]


class PasswordUpdate(RequestSchema):
    current_password: Annotated[str, StringConstraints(min_length=1)]
    new_password: Annotated[str, StringConstraints(min_length=6, max_length=128)]


class BrandCreate(RequestSchema):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    description: Optional[str] = None


class CategoryCreate(RequestSchema):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    parent_id: Optional[Identifier] = None
    description: Optional[str] = None


class ProductCreate(RequestSchema):
    sku: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]] = None
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    description: str = ''
    price: Price
    image_url: str = ''
    category_id: Identifier
    brand_id: Identifier
    stock: NonNegativeInt = 0


class ProductUpdate(RequestSchema):
    """Partial update; only keys present in the body are applied"""
    sku: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]] = None
    name: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]] = None
    description: Optional[str] = None
    price: Optional[Price] = None
    image_url: Optional[str] = None
    category_id: Optional[Identifier] = None
    brand_id: Optional[Identifier] = None
    stock: Optional[NonNegativeInt] = None

    @field_validator('*')
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError('must not be null')
        return value


class CartItemCreate(RequestSchema):
    product_id: Identifier
    quantity: PositiveInt = 1


class CartItemUpdate(RequestSchema):
    quantity: PositiveInt


class OrderCreate(RequestSchema):
    shipping_address: Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=500)]
    contact_phone: Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=50)]


class OrderStatusUpdate(RequestSchema):
    status: NonEmptyStr


class ReviewCreate(RequestSchema):
    rating: Annotated[int, Field(strict=True, ge=1, le=5)]
    comment: Annotated[str, StringConstraints(strip_whitespace=True, max_length=2000)] = ''


def load_json(schema):
    """Validate the request JSON body against a schema"""
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError('Request body must be JSON')
    return schema.model_validate(payload)
