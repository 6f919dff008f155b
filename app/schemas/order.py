# app/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from app.schemas.product import SizeSnapshot
from app.schemas.user import CustomerSnapshot

OrderStatus = Literal[
    "pending",
    "confirmed",
    "preparing",
    "on_the_way",
    "completed",
    "cancelled",
]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class OrderItemCreate(SQLModel):
    """
    One line of a directly created order (price supplied by the caller).
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    size_id: uuid.UUID | None = None
    quantity: int = Field(gt=0)
    unit_price: float = Field(gt=0)


class OrderCreate(SQLModel):
    """
    Admin payload to create an order with explicit line items.

    Backend derives:
      - total_amount = Σ quantity × unit_price
      - status = payment_status = 'pending'
      - estimated_delivery = now + 1 hour
    """

    model_config = ConfigDict(extra="forbid")

    customer_id: uuid.UUID
    items: list[OrderItemCreate]
    payment_method: str
    address: str
    notes: str = ""

    @field_validator("payment_method", "address")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("campo requerido")
        return v

    @field_validator("items")
    @classmethod
    def at_least_one_item(cls, v: list[OrderItemCreate]) -> list[OrderItemCreate]:
        if not v:
            raise ValueError("el pedido debe tener al menos un producto")
        return v


class CheckoutCreate(SQLModel):
    """
    Payload for converting the current cart into an order.

    Either a saved address (address_id) or a free-text address is required.
    """

    model_config = ConfigDict(extra="forbid")

    payment_method: str
    address_id: uuid.UUID | None = None
    address: str | None = None
    notes: str = ""

    @field_validator("payment_method")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("el método de pago es requerido")
        return v

    @field_validator("address")
    @classmethod
    def normalize_address(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def address_source(self):
        if self.address_id is None and self.address is None:
            raise ValueError("se requiere una dirección de entrega")
        return self


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    customer_id: uuid.UUID
    total_amount: float
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    address: str
    notes: str
    estimated_delivery: datetime | None
    created_at: datetime
    updated_at: datetime


class OrderItemRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None = None
    size_id: uuid.UUID | None = None
    size: SizeSnapshot | None = None
    quantity: int
    unit_price: float
    subtotal: float


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items and the customer snapshot.
    """

    items: list[OrderItemRead]
    customer: CustomerSnapshot | None = None


class OrderStatusUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


class PaymentStatusUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    payment_status: PaymentStatus


class OrderStats(SQLModel):
    total_orders: int
    pending_orders: int
    revenue_today: float
