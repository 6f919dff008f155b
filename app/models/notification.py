# app/models/notification.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Notification(SQLModel, table=True):
    """
    In-app message for a single user.

    Created by the order/reservation status engines (or by an admin),
    mutated only by marking it read, deleted only by its owner.

    emailed_at doubles as the email outbox marker: rows with
    emailed_at = NULL are still waiting to be mailed. A drain claims a row
    through email_claimed_at before sending; email_attempts counts failed
    sends and stops retries once it reaches the limit.
    """

    __tablename__ = "notifications"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    title: str = Field(max_length=200)
    message: str
    type: str = Field(index=True)

    related_id: uuid.UUID | None = Field(default=None)

    is_read: bool = Field(default=False, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )

    emailed_at: datetime | None = Field(default=None, index=True)
    email_claimed_at: datetime | None = Field(default=None)
    email_attempts: int = Field(default=0)
