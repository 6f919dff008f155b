# app/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent user profile.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "user"  : storefront customer
      - "staff" : bakery employee (attendance)
      - "admin" : back-office administrator
      - guests are represented by a missing token.

    Passwords live in Supabase Auth; this table only mirrors identity,
    contact data and application role.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    first_name: str = Field(
        max_length=50,
        description="First name; first part of email by default",
    )
    last_name: str = Field(default="", max_length=50)
    phone: str | None = Field(default=None, max_length=20)

    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | staff | admin",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
