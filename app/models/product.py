# app/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Catalog entry (cake, dessert, pastry).

    Pricing:
      - effective price is offer_price while is_offer is set,
        otherwise price (see `effective_price`).
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        index=True,
        description="Display name of the product",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    description: str = Field(default="")

    category_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    price: float = Field(gt=0, description="Regular unit price (S/)")
    offer_price: float | None = Field(default=None, ge=0)
    is_offer: bool = Field(default=False, index=True)

    stock: int = Field(default=0, ge=0)

    preparation_time: int = Field(
        default=0,
        ge=0,
        description="Preparation time in minutes",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    hero_image_url: str | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    @property
    def effective_price(self) -> float:
        if self.is_offer and self.offer_price:
            return self.offer_price
        return self.price


class ProductImage(SQLModel, table=True):
    """
    Additional gallery images for a product.
    """

    __tablename__ = "product_images"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    image_url: str = Field(description="Public URL stored in Supabase Storage")

    sort_order: int = Field(default=0, ge=0)


class ProductSize(SQLModel, table=True):
    """
    Size variant (e.g. "Mediana - 12 personas") that adds
    `additional_price` to the product's unit price.
    """

    __tablename__ = "product_sizes"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=50)
    person_capacity: int = Field(default=0, ge=0)
    additional_price: float = Field(default=0.0, ge=0)
    description: str = Field(default="")
    is_active: bool = Field(default=True, index=True)
    display_order: int = Field(default=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ProductSizeOption(SQLModel, table=True):
    """
    Size offered for a given product. A product with no rows here is
    sold without sizes; at most one row per product is the default.
    """

    __tablename__ = "product_size_options"
    __table_args__ = (UniqueConstraint("product_id", "size_id"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)
    size_id: uuid.UUID = Field(foreign_key="product_sizes.id", index=True)
    is_default: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
