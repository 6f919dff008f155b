# app/schemas/reservation.py
import re
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.user import CustomerSnapshot

ReservationStatus = Literal[
    "pending",
    "confirmed",
    "preparing",
    "on_the_way",
    "completed",
    "cancelled",
    "no_show",
]

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _validate_time(v: str) -> str:
    v = v.strip()
    if not _TIME_RE.match(v):
        raise ValueError("la hora debe tener el formato HH:MM")
    return v


class ProductSnapshot(SQLModel):
    """Product details embedded in reservation views."""

    id: uuid.UUID
    name: str
    price: float
    preparation_time: int
    image_url: str | None = None


class ReservationCreate(SQLModel):
    """
    Single-product reservation.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    size_id: uuid.UUID | None = None
    reservation_date: date
    reservation_time: str
    quantity: int = Field(gt=0)
    special_requests: str = ""
    customer_phone: str | None = None

    @field_validator("reservation_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return _validate_time(v)


class ReservationBasketItem(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    size_id: uuid.UUID | None = None
    quantity: int = Field(gt=0)


class ReservationBasketCreate(SQLModel):
    """
    Several products booked for the same date and time.
    Persisted as one reservation row per item.
    """

    model_config = ConfigDict(extra="forbid")

    items: list[ReservationBasketItem]
    reservation_date: date
    reservation_time: str
    special_requests: str = ""
    customer_phone: str | None = None

    @field_validator("reservation_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return _validate_time(v)

    @field_validator("items")
    @classmethod
    def at_least_one_item(
        cls, v: list[ReservationBasketItem]
    ) -> list[ReservationBasketItem]:
        if not v:
            raise ValueError("la reservación debe tener al menos un producto")
        return v


class ReservationRead(SQLModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    product_id: uuid.UUID
    size_id: uuid.UUID | None
    reservation_date: date
    reservation_time: str
    quantity: int
    special_requests: str
    status: ReservationStatus
    total_amount: float
    created_at: datetime


class ReservationDetail(ReservationRead):
    """Single row with customer and product details."""

    customer: CustomerSnapshot
    product: ProductSnapshot


class ReservationGroupItem(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    size_id: uuid.UUID | None
    quantity: int
    special_requests: str
    total_amount: float
    product: ProductSnapshot


class ReservationGroup(SQLModel):
    """
    Computed basket: every reservation row sharing
    (customer_id, reservation_date, reservation_time).

    id/status/created_at come from the first row of the group.
    """

    id: uuid.UUID
    customer_id: uuid.UUID
    customer: CustomerSnapshot
    reservation_date: date
    reservation_time: str
    status: ReservationStatus
    created_at: datetime
    items: list[ReservationGroupItem]
    total_amount_combined: float


class ReservationStatusUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    status: ReservationStatus


class Availability(SQLModel):
    disponible: bool


class ReservationStats(SQLModel):
    total_reservations: int
    pending_reservations: int
    today_reservations: int
