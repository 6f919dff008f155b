# app/routers/reservations.py
import uuid
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin, require_auth
from app.database import get_session
from app.models.user import User
from app.repositories.notification_repo import NotificationRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.reservation_repo import ReservationRepository
from app.repositories.user_repo import UserRepository
from app.schemas.reservation import (
    Availability,
    ReservationBasketCreate,
    ReservationCreate,
    ReservationDetail,
    ReservationGroup,
    ReservationStats,
    ReservationStatus,
    ReservationStatusUpdate,
)
from app.services.notification_service import NotificationService
from app.services.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["Reservations"])

notification_service = NotificationService(NotificationRepository())
service = ReservationService(
    ReservationRepository(),
    ProductRepository(),
    UserRepository(),
    notification_service,
)


# -------- Public availability --------


@router.get("/slots", response_model=list[str])
def available_slots(
    product_id: uuid.UUID,
    on_date: date = Query(..., alias="date"),
    session: Session = Depends(get_session),
):
    """
    Free half-hour slots (09:00 to 20:30) for a product on a date.
    """
    return service.get_available_slots(session, on_date, product_id)


@router.get("/availability", response_model=Availability)
def check_availability(
    product_id: uuid.UUID,
    at_time: str = Query(..., alias="time"),
    on_date: date = Query(..., alias="date"),
    session: Session = Depends(get_session),
):
    return service.check_availability(session, on_date, at_time, product_id)


# -------- Customer endpoints --------


@router.post(
    "",
    response_model=ReservationGroup,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    payload: ReservationCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Reserve a single product for a date and half-hour slot.

    409 if the slot is already taken for that product.
    """
    return service.create_reservation(session, current_user, payload)


@router.post(
    "/basket",
    response_model=ReservationGroup,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation_basket(
    payload: ReservationBasketCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Reserve several products for the same date and slot.

    Stored as one row per product; returned as a single basket.
    """
    return service.create_reservation_basket(session, current_user, payload)


@router.get("/me", response_model=list[ReservationGroup])
def list_my_reservations(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """The caller's reservation baskets, most recent date first."""
    return service.list_customer_reservations(session, current_user.id)


@router.post("/me/{reservation_id}/cancel", response_model=ReservationGroup)
def cancel_my_reservation(
    reservation_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Cancel the caller's basket that contains `reservation_id`.
    """
    group = service.cancel_my_reservation(session, current_user, reservation_id)
    background_tasks.add_task(notification_service.drain_outbox)
    return group


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[ReservationGroup],
    dependencies=[Depends(require_admin)],
)
def list_reservations(
    session: Session = Depends(get_session),
    status_filter: ReservationStatus | None = None,
    on_date: date | None = Query(default=None, alias="date"),
    customer_id: uuid.UUID | None = None,
):
    """
    Reservation baskets ordered by date and time (admin only).
    """
    return service.list_reservations(
        session,
        status_filter=status_filter,
        on_date=on_date,
        customer_id=customer_id,
    )


@router.get(
    "/today",
    response_model=list[ReservationGroup],
    dependencies=[Depends(require_admin)],
)
def today_reservations(session: Session = Depends(get_session)):
    """Pending and confirmed baskets for today."""
    return service.today_reservations(session)


@router.get(
    "/range",
    response_model=list[ReservationGroup],
    dependencies=[Depends(require_admin)],
)
def reservations_in_range(
    date_from: date,
    date_to: date,
    session: Session = Depends(get_session),
):
    return service.reservations_in_range(session, date_from, date_to)


@router.get(
    "/stats",
    response_model=ReservationStats,
    dependencies=[Depends(require_admin)],
)
def reservation_stats(session: Session = Depends(get_session)):
    return service.reservation_stats(session)


@router.get("/{reservation_id}", response_model=ReservationDetail)
def get_reservation(
    reservation_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    One reservation row with customer and product.

    Admins can read any row; customers only their own.
    """
    return service.get_reservation(session, reservation_id, current_user)


@router.patch(
    "/{reservation_id}/status",
    response_model=ReservationGroup,
    dependencies=[Depends(require_admin)],
)
def update_reservation_status(
    reservation_id: uuid.UUID,
    payload: ReservationStatusUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    """
    Change the status of the whole basket containing `reservation_id`.

    Every row sharing (customer, date, time) is updated and the customer
    receives a single notification.
    """
    group = service.set_reservation_group_status(
        session, reservation_id, payload.status
    )
    background_tasks.add_task(notification_service.drain_outbox)
    return group


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
def delete_reservation(
    reservation_id: uuid.UUID,
    session: Session = Depends(get_session),
) -> dict[str, int]:
    """
    Delete the whole basket containing `reservation_id` (admin only).
    """
    deleted = service.delete_reservation_group(session, reservation_id)
    return {"deleted": deleted}
