# app/schemas/notification.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

NotificationType = Literal[
    "order_confirmed",
    "order_preparing",
    "order_on_the_way",
    "order_completed",
    "order_cancelled",
    "reservation_confirmed",
    "reservation_preparing",
    "reservation_on_the_way",
    "reservation_completed",
    "reservation_cancelled",
    "general",
]


class NotificationCreate(SQLModel):
    """
    Payload for creating a notification on behalf of any user
    (admin/system only).
    """

    model_config = ConfigDict(extra="forbid")

    user_id: uuid.UUID
    title: str = Field(max_length=200)
    message: str
    type: NotificationType = "general"
    related_id: uuid.UUID | None = None

    @field_validator("title", "message")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("campo requerido")
        return v


class NotificationRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    message: str
    type: NotificationType
    related_id: uuid.UUID | None
    is_read: bool
    created_at: datetime


class UnreadCount(SQLModel):
    count: int


class EmailDrainResult(SQLModel):
    sent: int
    failed: int
