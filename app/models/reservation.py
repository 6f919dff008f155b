# app/models/reservation.py
import uuid
from datetime import date, datetime, timezone

from sqlmodel import SQLModel, Field


class Reservation(SQLModel, table=True):
    """
    One product line of a customer booking.

    A booking for several products is stored as several rows sharing
    (customer_id, reservation_date, reservation_time); there is no
    basket table. Rows with the same key always move together.

    status: pending | confirmed | preparing | on_the_way | completed
            | cancelled | no_show
    """

    __tablename__ = "reservations"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    customer_id: uuid.UUID = Field(
        foreign_key="users.id",
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

    reservation_date: date = Field(index=True)

    # "HH:MM" on the half-hour grid
    reservation_time: str = Field(max_length=5)

    quantity: int = Field(gt=0)
    special_requests: str = Field(default="")

    status: str = Field(default="pending", index=True)

    total_amount: float

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
