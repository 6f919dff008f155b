# app/schemas/attendance.py
import uuid
from datetime import date, datetime

from sqlmodel import SQLModel

from app.schemas.user import CustomerSnapshot


class AttendanceRead(SQLModel):
    id: uuid.UUID
    staff_id: uuid.UUID
    work_date: date
    check_in: datetime | None
    break_start: datetime | None
    break_end: datetime | None
    check_out: datetime | None
    hours_worked: float | None
    notes: str


class AttendanceAction(SQLModel):
    """Result of a check-in / break / check-out step."""

    message: str
    record: AttendanceRead


class MonthlyAttendance(SQLModel):
    records: list[AttendanceRead]
    total_hours: float


class StaffAttendanceRow(AttendanceRead):
    staff: CustomerSnapshot
