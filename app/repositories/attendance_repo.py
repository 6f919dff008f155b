# app/repositories/attendance_repo.py
import uuid
from datetime import date

from sqlmodel import Session, select

from app.models.attendance import StaffAttendance
from app.models.user import User


class AttendanceRepository:
    """
    Data access layer for staff_attendance.
    """

    def get_for_day(
        self,
        session: Session,
        staff_id: uuid.UUID,
        work_date: date,
    ) -> StaffAttendance | None:
        stmt = select(StaffAttendance).where(
            StaffAttendance.staff_id == staff_id,
            StaffAttendance.work_date == work_date,
        )
        return session.exec(stmt).first()

    def list_between(
        self,
        session: Session,
        start: date,
        end: date,
        staff_id: uuid.UUID | None = None,
    ) -> list[StaffAttendance]:
        """Records with start <= work_date < end, oldest first."""
        stmt = select(StaffAttendance).where(
            StaffAttendance.work_date >= start,
            StaffAttendance.work_date < end,
        )
        if staff_id is not None:
            stmt = stmt.where(StaffAttendance.staff_id == staff_id)
        stmt = stmt.order_by(StaffAttendance.work_date)
        return session.exec(stmt).all()

    def list_between_with_staff(
        self,
        session: Session,
        start: date,
        end: date,
    ) -> list[tuple[StaffAttendance, User]]:
        stmt = (
            select(StaffAttendance, User)
            .join(User, User.id == StaffAttendance.staff_id)
            .where(
                StaffAttendance.work_date >= start,
                StaffAttendance.work_date < end,
            )
            .order_by(StaffAttendance.work_date, User.first_name)
        )
        return list(session.exec(stmt).all())

    def save(self, session: Session, record: StaffAttendance) -> StaffAttendance:
        session.add(record)
        session.commit()
        session.refresh(record)
        return record
