# app/schemas/product.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    - slug is optional: if omitted, generated from `name`.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    slug: str | None = None
    description: str = ""
    category_id: uuid.UUID | None = None
    price: float = Field(gt=0)
    offer_price: float | None = Field(default=None, ge=0)
    is_offer: bool = False
    stock: int = Field(default=0, ge=0)
    preparation_time: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("el nombre es requerido")
        return v

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty if provided")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    slug: str | None = None
    description: str | None = None
    category_id: uuid.UUID | None = None
    price: float | None = Field(default=None, gt=0)
    offer_price: float | None = Field(default=None, ge=0)
    is_offer: bool | None = None
    stock: int | None = Field(default=None, ge=0)
    preparation_time: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    hero_image_url: str | None = None  # allow manual override if needed

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("el nombre no puede estar vacío")
        return v


class StockUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    stock: int = Field(ge=0)


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    slug: str
    description: str
    category_id: uuid.UUID | None
    price: float
    offer_price: float | None
    is_offer: bool
    effective_price: float
    stock: int
    preparation_time: int
    is_active: bool
    hero_image_url: str | None
    created_at: datetime


class ProductImageRead(SQLModel):
    """
    Read model for gallery images.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    image_url: str
    sort_order: int


class BestSeller(SQLModel):
    product_id: uuid.UUID
    name: str
    total_quantity: int


# ----- Sizes -----


class ProductSizeCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=50)
    person_capacity: int = Field(default=0, ge=0)
    additional_price: float = Field(default=0.0, ge=0)
    description: str = ""
    is_active: bool = True
    display_order: int = 0

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("el nombre es requerido")
        return v


class ProductSizeUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=50)
    person_capacity: int | None = Field(default=None, ge=0)
    additional_price: float | None = Field(default=None, ge=0)
    description: str | None = None
    is_active: bool | None = None
    display_order: int | None = None


class ProductSizeRead(SQLModel):
    id: uuid.UUID
    name: str
    person_capacity: int
    additional_price: float
    description: str
    is_active: bool
    display_order: int
    created_at: datetime


class SizeSnapshot(SQLModel):
    """Size details embedded in cart/order/reservation views."""

    id: uuid.UUID
    name: str
    person_capacity: int


# ----- Sizes offered per product -----


class ProductSizeOptionCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    size_id: uuid.UUID
    is_default: bool = False


class ProductSizeOptionsReplace(SQLModel):
    """Full list of sizes for a product; the default must be one of them."""

    model_config = ConfigDict(extra="forbid")

    size_ids: list[uuid.UUID]
    default_size_id: uuid.UUID | None = None


class ProductSizeOptionRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    size_id: uuid.UUID
    is_default: bool
    size: ProductSizeRead
