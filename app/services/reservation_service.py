# app/services/reservation_service.py
import logging
import uuid
from datetime import date, datetime, time

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.timeutils import LOCAL_TZ, local_now, local_today
from app.models.product import Product, ProductSize
from app.models.reservation import Reservation
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.repositories.reservation_repo import ACTIVE_STATUSES, ReservationRepository
from app.repositories.user_repo import UserRepository
from app.schemas.reservation import (
    Availability,
    ReservationBasketCreate,
    ReservationCreate,
    ReservationDetail,
    ReservationGroup,
    ReservationStats,
)
from app.services.notification_service import NotificationService
from app.services.product_service import ensure_size_offered, live_unit_price
from app.services.reservation_grouping import group_reservations
from app.services.snapshots import customer_snapshot, product_snapshot
from app.services.status_rules import RESERVATION_TRANSITIONS, ensure_transition

logger = logging.getLogger(__name__)

# Half-hour grid from 09:00 to 20:30; the shop closes at 21:00.
SLOT_TIMES: list[str] = [
    f"{hour:02d}:{minute:02d}" for hour in range(9, 21) for minute in (0, 30)
]

CUSTOMER_CANCELLABLE = {"pending", "confirmed"}


def reservation_notification(
    new_status: str,
    product_names: str,
    reservation_date: date,
    reservation_time: str,
) -> tuple[str, str, str] | None:
    """
    (type, title, message) for the basket owner, or None for statuses
    that do not notify (pending, no_show).
    """
    day = reservation_date.strftime("%d/%m/%Y")

    if new_status == "confirmed":
        return (
            "reservation_confirmed",
            "Reservación Confirmada",
            f"Tu reservación de {product_names} para el {day} a las "
            f"{reservation_time} ha sido confirmada. ¡Te esperamos!",
        )
    if new_status == "preparing":
        return (
            "reservation_preparing",
            "Reservación en Preparación",
            f"Tu reservación de {product_names} esta siendo preparada.",
        )
    if new_status == "on_the_way":
        return (
            "reservation_on_the_way",
            "Reservación En Camino",
            f"Tu reservación de {product_names} esta en camino a ser entregado.",
        )
    if new_status == "completed":
        return (
            "reservation_completed",
            "Reservación Completada",
            f"Gracias por tu compra de {product_names}. "
            "¡Esperamos que lo hayas disfrutado!",
        )
    if new_status == "cancelled":
        return (
            "reservation_cancelled",
            "Reservación Cancelada",
            f"Tu reservación de {product_names} para el {day} ha sido cancelada.",
        )
    return None


class ReservationService:
    """
    Reservations: creation, availability and the group status engine.

    A customer's booking of several products is several rows sharing
    (customer_id, reservation_date, reservation_time). Status changes and
    deletes always apply to every row of that key; reads fold rows back
    into baskets with `group_reservations`.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
        notification_service: NotificationService,
    ):
        self.reservation_repo = reservation_repo
        self.product_repo = product_repo
        self.user_repo = user_repo
        self.notification_service = notification_service

    # -------- Creation --------

    def create_reservation(
        self,
        session: Session,
        customer: User,
        payload: ReservationCreate,
    ) -> ReservationGroup:
        """Book a single product (one-row basket)."""
        self._validate_slot(payload.reservation_date, payload.reservation_time)
        product, size = self._load_bookable(session, payload.product_id, payload.size_id)
        self._ensure_slot_free(
            session, payload.reservation_date, payload.reservation_time, product
        )

        row = Reservation(
            customer_id=customer.id,
            product_id=product.id,
            size_id=size.id if size else None,
            reservation_date=payload.reservation_date,
            reservation_time=payload.reservation_time,
            quantity=payload.quantity,
            special_requests=payload.special_requests.strip(),
            status="pending",
            total_amount=live_unit_price(product, size) * payload.quantity,
        )
        return self._persist_basket(session, customer, [row], payload.customer_phone)

    def create_reservation_basket(
        self,
        session: Session,
        customer: User,
        payload: ReservationBasketCreate,
    ) -> ReservationGroup:
        """
        Book several products for the same date and time.

        Totals are recomputed here from live prices; the selected size is
        appended to each row's special requests as "[Tamaño: X]". A product
        may appear only once, since one booking already holds its slot.
        """
        self._validate_slot(payload.reservation_date, payload.reservation_time)

        base_requests = payload.special_requests.strip()
        rows: list[Reservation] = []
        claimed: set[uuid.UUID] = set()
        for item in payload.items:
            product, size = self._load_bookable(session, item.product_id, item.size_id)
            if product.id in claimed:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"{product.name} aparece más de una vez en la reservación",
                )
            claimed.add(product.id)
            self._ensure_slot_free(
                session, payload.reservation_date, payload.reservation_time, product
            )

            requests = base_requests
            if size is not None:
                requests = f"{requests} [Tamaño: {size.name}]".strip()

            rows.append(
                Reservation(
                    customer_id=customer.id,
                    product_id=product.id,
                    size_id=size.id if size else None,
                    reservation_date=payload.reservation_date,
                    reservation_time=payload.reservation_time,
                    quantity=item.quantity,
                    special_requests=requests,
                    status="pending",
                    total_amount=live_unit_price(product, size) * item.quantity,
                )
            )

        return self._persist_basket(session, customer, rows, payload.customer_phone)

    def _persist_basket(
        self,
        session: Session,
        customer: User,
        rows: list[Reservation],
        customer_phone: str | None,
    ) -> ReservationGroup:
        phone = customer_phone.strip() if customer_phone else None
        if phone and phone != customer.phone:
            self.user_repo.set_phone(session, customer, phone)

        self.reservation_repo.create_many(session, rows)
        session.commit()

        first = rows[0]
        logger.info(
            f"Reservation for {customer.id} on {first.reservation_date} "
            f"{first.reservation_time}: {len(rows)} items"
        )
        return self._load_group(session, first)

    # -------- Availability --------

    def get_available_slots(
        self,
        session: Session,
        on_date: date,
        product_id: uuid.UUID,
    ) -> list[str]:
        """
        Grid slots with no pending/confirmed booking of the product.
        One booking blocks the slot; there is no capacity accounting.
        """
        taken = self.reservation_repo.taken_times(session, on_date, product_id)
        return [slot for slot in SLOT_TIMES if slot not in taken]

    def check_availability(
        self,
        session: Session,
        on_date: date,
        at_time: str,
        product_id: uuid.UUID,
    ) -> Availability:
        taken = self.reservation_repo.taken_times(session, on_date, product_id)
        return Availability(disponible=at_time in SLOT_TIMES and at_time not in taken)

    # -------- Group status engine --------

    def set_reservation_group_status(
        self,
        session: Session,
        member_id: uuid.UUID,
        new_status: str,
    ) -> ReservationGroup:
        """
        Move every row of the member's basket to `new_status`.

        Writes one UPDATE for the whole key and exactly one notification,
        attached to the first row of the basket, in the same commit. Re-setting
        the current status is allowed and notifies again.
        """
        member = self._get_or_404(session, member_id)
        current = member.status

        if current != new_status:
            ensure_transition(RESERVATION_TRANSITIONS, current, new_status)

        self.reservation_repo.set_group_status(session, member, new_status)

        rows = self.reservation_repo.list_group_with_products(session, member)
        representative = rows[0][0]
        names = ", ".join(product.name for _, product in rows)

        note = reservation_notification(
            new_status,
            names,
            representative.reservation_date,
            representative.reservation_time,
        )
        if note is not None:
            type_, title, message = note
            self.notification_service.stage_notification(
                session,
                user_id=representative.customer_id,
                title=title,
                message=message,
                type_=type_,
                related_id=representative.id,
            )

        session.commit()
        logger.info(
            f"Reservation group {representative.id} ({len(rows)} rows): "
            f"{current} -> {new_status}"
        )
        return self._load_group(session, representative)

    def delete_reservation_group(self, session: Session, member_id: uuid.UUID) -> int:
        member = self._get_or_404(session, member_id)
        deleted = self.reservation_repo.delete_group(session, member)
        session.commit()
        logger.info(f"Deleted reservation group of {member_id}: {deleted} rows")
        return deleted

    def cancel_my_reservation(
        self,
        session: Session,
        customer: User,
        member_id: uuid.UUID,
    ) -> ReservationGroup:
        member = self.reservation_repo.get_by_id(session, member_id)
        if not member or member.customer_id != customer.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Reservación no encontrada",
            )
        if member.status not in CUSTOMER_CANCELLABLE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Solo se pueden cancelar reservaciones pendientes o confirmadas",
            )
        return self.set_reservation_group_status(session, member_id, "cancelled")

    # -------- Reads --------

    def list_reservations(
        self,
        session: Session,
        status_filter: str | None = None,
        on_date: date | None = None,
        customer_id: uuid.UUID | None = None,
    ) -> list[ReservationGroup]:
        rows = self.reservation_repo.list_detailed(
            session,
            status=status_filter,
            on_date=on_date,
            customer_id=customer_id,
        )
        return group_reservations(rows)

    def list_customer_reservations(
        self,
        session: Session,
        customer_id: uuid.UUID,
    ) -> list[ReservationGroup]:
        rows = self.reservation_repo.list_detailed(
            session, customer_id=customer_id, descending=True
        )
        return group_reservations(rows)

    def today_reservations(self, session: Session) -> list[ReservationGroup]:
        rows = self.reservation_repo.list_detailed(
            session, on_date=local_today(), statuses=ACTIVE_STATUSES
        )
        return group_reservations(rows)

    def reservations_in_range(
        self,
        session: Session,
        date_from: date,
        date_to: date,
    ) -> list[ReservationGroup]:
        if date_to < date_from:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Rango de fechas inválido",
            )
        rows = self.reservation_repo.list_detailed(
            session, date_from=date_from, date_to=date_to
        )
        return group_reservations(rows)

    def get_reservation(
        self,
        session: Session,
        reservation_id: uuid.UUID,
        user: User,
    ) -> ReservationDetail:
        found = self.reservation_repo.get_detail(session, reservation_id)
        if not found or (user.role != "admin" and found[0].customer_id != user.id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Reservación no encontrada",
            )
        reservation, product, customer = found
        return ReservationDetail(
            **reservation.model_dump(),
            customer=customer_snapshot(customer),
            product=product_snapshot(product),
        )

    def reservation_stats(self, session: Session) -> ReservationStats:
        return ReservationStats(
            total_reservations=self.reservation_repo.count(session),
            pending_reservations=self.reservation_repo.count(session, status="pending"),
            today_reservations=self.reservation_repo.count(
                session, on_date=local_today()
            ),
        )

    # -------- Helpers --------

    def _get_or_404(self, session: Session, reservation_id: uuid.UUID) -> Reservation:
        reservation = self.reservation_repo.get_by_id(session, reservation_id)
        if not reservation:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Reservación no encontrada",
            )
        return reservation

    def _load_group(self, session: Session, member: Reservation) -> ReservationGroup:
        customer = self.user_repo.get_by_id(session, member.customer_id)
        rows = [
            (r, p, customer)
            for r, p in self.reservation_repo.list_group_with_products(session, member)
        ]
        return group_reservations(rows)[0]

    @staticmethod
    def _validate_slot(on_date: date, at_time: str) -> None:
        if at_time not in SLOT_TIMES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Horario no disponible: {at_time}. Atendemos de 09:00 a 20:30",
            )
        slot_start = datetime.combine(
            on_date, time.fromisoformat(at_time), tzinfo=LOCAL_TZ
        )
        if slot_start < local_now():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No se pueden hacer reservaciones en fechas pasadas",
            )

    def _load_bookable(
        self,
        session: Session,
        product_id: uuid.UUID,
        size_id: uuid.UUID | None,
    ) -> tuple[Product, ProductSize | None]:
        product = self.product_repo.get_by_id(session, product_id)
        if not product or not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado",
            )

        size = None
        if size_id is not None:
            size = self.product_repo.get_size(session, size_id)
            if not size or not size.is_active:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Tamaño no encontrado",
                )
            ensure_size_offered(session, self.product_repo, product, size)
        return product, size

    def _ensure_slot_free(
        self,
        session: Session,
        on_date: date,
        at_time: str,
        product: Product,
    ) -> None:
        if at_time in self.reservation_repo.taken_times(session, on_date, product.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"El horario {at_time} ya está reservado para {product.name}",
            )
