# app/models/attendance.py
import uuid
from datetime import date, datetime, timezone

from sqlmodel import SQLModel, Field


class StaffAttendance(SQLModel, table=True):
    """
    Daily attendance record for a staff member.

    One row per (staff_id, work_date). hours_worked is filled at check-out
    (elapsed time minus the break).
    """

    __tablename__ = "staff_attendance"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    staff_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    work_date: date = Field(index=True)

    check_in: datetime | None = None
    break_start: datetime | None = None
    break_end: datetime | None = None
    check_out: datetime | None = None

    hours_worked: float | None = None
    notes: str = Field(default="")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
