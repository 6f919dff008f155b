# app/services/attendance_service.py
import logging
import uuid
from datetime import date

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.auth import STAFF_ROLES
from app.core.timeutils import as_utc, local_today, utcnow
from app.models.attendance import StaffAttendance
from app.repositories.attendance_repo import AttendanceRepository
from app.repositories.user_repo import UserRepository
from app.schemas.attendance import (
    AttendanceAction,
    AttendanceRead,
    MonthlyAttendance,
    StaffAttendanceRow,
)
from app.services.snapshots import customer_snapshot

logger = logging.getLogger(__name__)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise _bad_request("El mes debe estar entre 1 y 12")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def _action(message: str, record: StaffAttendance) -> AttendanceAction:
    return AttendanceAction(message=message, record=AttendanceRead.model_validate(record))


def compute_hours_worked(record: StaffAttendance) -> float:
    """Elapsed time between check-in and check-out minus the break, in hours."""
    elapsed = as_utc(record.check_out) - as_utc(record.check_in)
    if record.break_start and record.break_end:
        elapsed -= as_utc(record.break_end) - as_utc(record.break_start)
    return round(max(elapsed.total_seconds(), 0) / 3600, 2)


class AttendanceService:
    """
    Daily attendance for staff: check in, one break, check out.

    Each step can be recorded once per day and requires the previous one.
    """

    def __init__(self, repo: AttendanceRepository, user_repo: UserRepository):
        self.repo = repo
        self.user_repo = user_repo

    # ---- steps ----

    def check_in(self, session: Session, staff_id: uuid.UUID) -> AttendanceAction:
        today = local_today()
        record = self.repo.get_for_day(session, staff_id, today)
        if record and record.check_in:
            raise _bad_request("Ya marcaste entrada hoy")

        record = record or StaffAttendance(staff_id=staff_id, work_date=today)
        record.check_in = utcnow()
        record = self.repo.save(session, record)
        logger.info(f"Staff {staff_id} checked in")
        return _action("Entrada registrada", record)

    def start_break(self, session: Session, staff_id: uuid.UUID) -> AttendanceAction:
        record = self._today_checked_in(session, staff_id)
        if record.break_start:
            raise _bad_request("Ya iniciaste el refrigerio")
        if record.check_out:
            raise _bad_request("Ya marcaste salida hoy")

        record.break_start = utcnow()
        record = self.repo.save(session, record)
        return _action("Refrigerio iniciado", record)

    def end_break(self, session: Session, staff_id: uuid.UUID) -> AttendanceAction:
        record = self._today_checked_in(session, staff_id)
        if not record.break_start:
            raise _bad_request("Debes iniciar el refrigerio primero")
        if record.break_end:
            raise _bad_request("Ya finalizaste el refrigerio")

        record.break_end = utcnow()
        record = self.repo.save(session, record)
        return _action("Refrigerio finalizado", record)

    def check_out(self, session: Session, staff_id: uuid.UUID) -> AttendanceAction:
        record = self._today_checked_in(session, staff_id)
        if record.check_out:
            raise _bad_request("Ya marcaste salida hoy")

        now = utcnow()
        # An open break ends at check-out
        if record.break_start and not record.break_end:
            record.break_end = now
        record.check_out = now
        record.hours_worked = compute_hours_worked(record)

        record = self.repo.save(session, record)
        logger.info(f"Staff {staff_id} checked out ({record.hours_worked} h)")
        return _action("Salida registrada", record)

    def mark_for_staff(
        self,
        session: Session,
        staff_id: uuid.UUID,
        action: str,
    ) -> AttendanceAction:
        """Admin records a step on behalf of a staff member."""
        user = self.user_repo.get_by_id(session, staff_id)
        if not user or user.role not in STAFF_ROLES:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Personal no encontrado",
            )
        steps = {
            "check_in": self.check_in,
            "start_break": self.start_break,
            "end_break": self.end_break,
            "check_out": self.check_out,
        }
        return steps[action](session, staff_id)

    # ---- reads ----

    def today(self, session: Session, staff_id: uuid.UUID) -> StaffAttendance | None:
        return self.repo.get_for_day(session, staff_id, local_today())

    def monthly(
        self,
        session: Session,
        staff_id: uuid.UUID,
        year: int,
        month: int,
    ) -> MonthlyAttendance:
        start, end = _month_bounds(year, month)
        records = self.repo.list_between(session, start, end, staff_id=staff_id)
        total = sum(r.hours_worked or 0.0 for r in records)
        return MonthlyAttendance(
            records=[AttendanceRead.model_validate(r) for r in records],
            total_hours=round(total, 2),
        )

    def monthly_report(
        self,
        session: Session,
        year: int,
        month: int,
    ) -> list[StaffAttendanceRow]:
        start, end = _month_bounds(year, month)
        return [
            StaffAttendanceRow(
                **record.model_dump(),
                staff=customer_snapshot(staff),
            )
            for record, staff in self.repo.list_between_with_staff(session, start, end)
        ]

    # ---- helpers ----

    def _today_checked_in(self, session: Session, staff_id: uuid.UUID) -> StaffAttendance:
        record = self.repo.get_for_day(session, staff_id, local_today())
        if not record or not record.check_in:
            raise _bad_request("Debes marcar entrada primero")
        return record
