# app/models/address.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class ShippingAddress(SQLModel, table=True):
    """
    Saved delivery address. At most one default per user.
    """

    __tablename__ = "shipping_addresses"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    address_name: str = Field(default="", max_length=50)
    address: str
    department: str
    province: str
    district: str
    reference: str = Field(default="")

    is_default: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    def as_text(self) -> str:
        """Single-line rendering stored on orders."""
        parts = [self.address, self.district, self.province, self.department]
        text = ", ".join(p for p in parts if p)
        if self.reference:
            text += f" (Ref: {self.reference})"
        return text
