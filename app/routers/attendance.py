# app/routers/attendance.py
import uuid
from typing import Literal

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_admin, require_staff
from app.database import get_session
from app.models.user import User
from app.repositories.attendance_repo import AttendanceRepository
from app.repositories.user_repo import UserRepository
from app.schemas.attendance import (
    AttendanceAction,
    AttendanceRead,
    MonthlyAttendance,
    StaffAttendanceRow,
)
from app.services.attendance_service import AttendanceService

router = APIRouter(prefix="/attendance", tags=["Attendance"])

service = AttendanceService(AttendanceRepository(), UserRepository())

AttendanceStep = Literal["check_in", "start_break", "end_break", "check_out"]


# -------- Staff self-service --------


@router.post("/check-in", response_model=AttendanceAction)
def check_in(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    return service.check_in(session, current_user.id)


@router.post("/break/start", response_model=AttendanceAction)
def start_break(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    return service.start_break(session, current_user.id)


@router.post("/break/end", response_model=AttendanceAction)
def end_break(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    return service.end_break(session, current_user.id)


@router.post("/check-out", response_model=AttendanceAction)
def check_out(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    """
    Close the day: hours_worked = elapsed time minus the break.
    """
    return service.check_out(session, current_user.id)


@router.get("/today", response_model=AttendanceRead | None)
def today(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    """Today's record, or null before check-in."""
    return service.today(session, current_user.id)


@router.get("/monthly", response_model=MonthlyAttendance)
def monthly(
    year: int,
    month: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    return service.monthly(session, current_user.id, year, month)


# -------- Admin endpoints --------


@router.get(
    "/report",
    response_model=list[StaffAttendanceRow],
    dependencies=[Depends(require_admin)],
)
def monthly_report(
    year: int,
    month: int,
    session: Session = Depends(get_session),
):
    """All staff records for a month (admin only)."""
    return service.monthly_report(session, year, month)


@router.post(
    "/staff/{staff_id}/{step}",
    response_model=AttendanceAction,
    dependencies=[Depends(require_admin)],
)
def mark_for_staff(
    staff_id: uuid.UUID,
    step: AttendanceStep,
    session: Session = Depends(get_session),
):
    """
    Record an attendance step on behalf of a staff member (admin only).
    """
    return service.mark_for_staff(session, staff_id, step)
