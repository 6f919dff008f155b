# app/repositories/reservation_repo.py
import uuid
from datetime import date

from sqlalchemy import delete, func, update
from sqlmodel import Session, col, select

from app.models.product import Product
from app.models.reservation import Reservation
from app.models.user import User

ACTIVE_STATUSES = ("pending", "confirmed")


class ReservationRepository:
    """
    Data access layer for reservations.

    Group operations match on the composite key
    (customer_id, reservation_date, reservation_time).
    Like OrderRepository, writes are not committed here.
    """

    def get_by_id(
        self,
        session: Session,
        reservation_id: uuid.UUID,
    ) -> Reservation | None:
        return session.get(Reservation, reservation_id)

    def get_detail(
        self,
        session: Session,
        reservation_id: uuid.UUID,
    ) -> tuple[Reservation, Product, User] | None:
        stmt = (
            select(Reservation, Product, User)
            .join(Product, Product.id == Reservation.product_id)
            .join(User, User.id == Reservation.customer_id)
            .where(Reservation.id == reservation_id)
        )
        return session.exec(stmt).first()

    def list_detailed(
        self,
        session: Session,
        status: str | None = None,
        on_date: date | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        customer_id: uuid.UUID | None = None,
        statuses: tuple[str, ...] | None = None,
        descending: bool = False,
    ) -> list[tuple[Reservation, Product, User]]:
        """
        Reservation rows joined with product and customer, ordered by
        date then time (ascending unless `descending`), then creation.
        """
        stmt = (
            select(Reservation, Product, User)
            .join(Product, Product.id == Reservation.product_id)
            .join(User, User.id == Reservation.customer_id)
        )
        if status:
            stmt = stmt.where(Reservation.status == status)
        if statuses:
            stmt = stmt.where(col(Reservation.status).in_(statuses))
        if on_date:
            stmt = stmt.where(Reservation.reservation_date == on_date)
        if date_from:
            stmt = stmt.where(Reservation.reservation_date >= date_from)
        if date_to:
            stmt = stmt.where(Reservation.reservation_date <= date_to)
        if customer_id:
            stmt = stmt.where(Reservation.customer_id == customer_id)

        if descending:
            stmt = stmt.order_by(
                col(Reservation.reservation_date).desc(),
                col(Reservation.reservation_time).desc(),
                Reservation.created_at,
            )
        else:
            stmt = stmt.order_by(
                Reservation.reservation_date,
                Reservation.reservation_time,
                Reservation.created_at,
            )
        return list(session.exec(stmt).all())

    def create_many(
        self,
        session: Session,
        rows: list[Reservation],
    ) -> list[Reservation]:
        session.add_all(rows)
        session.flush()
        return rows

    # ---- Composite-key group ----

    def _group_filter(self, member: Reservation):
        return (
            Reservation.customer_id == member.customer_id,
            Reservation.reservation_date == member.reservation_date,
            Reservation.reservation_time == member.reservation_time,
        )

    def set_group_status(
        self,
        session: Session,
        member: Reservation,
        new_status: str,
    ) -> None:
        """Single UPDATE over every row sharing the member's key."""
        session.execute(
            update(Reservation)
            .where(*self._group_filter(member))
            .values(status=new_status)
            .execution_options(synchronize_session="fetch")
        )

    def list_group_with_products(
        self,
        session: Session,
        member: Reservation,
    ) -> list[tuple[Reservation, Product]]:
        stmt = (
            select(Reservation, Product)
            .join(Product, Product.id == Reservation.product_id)
            .where(*self._group_filter(member))
            .order_by(Reservation.created_at)
        )
        return list(session.exec(stmt).all())

    def delete_group(self, session: Session, member: Reservation) -> int:
        result = session.execute(
            delete(Reservation)
            .where(*self._group_filter(member))
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    # ---- Availability ----

    def taken_times(
        self,
        session: Session,
        on_date: date,
        product_id: uuid.UUID,
    ) -> set[str]:
        """Times with at least one pending/confirmed booking of the product."""
        stmt = select(Reservation.reservation_time).where(
            Reservation.reservation_date == on_date,
            Reservation.product_id == product_id,
            col(Reservation.status).in_(ACTIVE_STATUSES),
        )
        return set(session.exec(stmt).all())

    # ---- Counts ----

    def count(
        self,
        session: Session,
        status: str | None = None,
        on_date: date | None = None,
        statuses: tuple[str, ...] | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(Reservation)
        if status:
            stmt = stmt.where(Reservation.status == status)
        if on_date:
            stmt = stmt.where(Reservation.reservation_date == on_date)
        if statuses:
            stmt = stmt.where(col(Reservation.status).in_(statuses))
        return int(session.exec(stmt).one() or 0)
