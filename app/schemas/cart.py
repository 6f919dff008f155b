# app/schemas/cart.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field

from app.schemas.product import SizeSnapshot


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)
    size_id: uuid.UUID | None = None


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.
    A quantity of 0 or less removes the item.
    """

    quantity: int


class CartItemRead(SQLModel):
    """
    Read model for a single cart item.

    unit_price is the live price (product effective price + size surcharge).
    """

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    product_image_url: str | None = None
    size: SizeSnapshot | None = None
    quantity: int
    unit_price: float
    line_total: float
    created_at: datetime


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartItemRead]
    total_quantity: int
    total_price: float


class CartCount(SQLModel):
    count: int
