# app/models/order.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order.

    Two independent lifecycles:
      - status: pending | confirmed | preparing | on_the_way | completed | cancelled
      - payment_status: pending | paid | failed | refunded

    total_amount is the sum of the line subtotals at creation time and is
    not re-validated afterwards.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    customer_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    total_amount: float = Field(description="Σ quantity × unit_price (S/)")

    status: str = Field(default="pending", index=True)
    payment_status: str = Field(default="pending", index=True)

    payment_method: str = Field(description="Free-text payment method label")
    address: str = Field(description="Delivery address (free text)")
    notes: str = Field(default="")

    estimated_delivery: datetime | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    unit_price is a snapshot taken at order time, never the live price.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    size_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="product_sizes.id",
    )

    quantity: int = Field(gt=0)

    unit_price: float = Field(description="Unit price at time of order")

    # Stored redundantly: quantity × unit_price
    subtotal: float
