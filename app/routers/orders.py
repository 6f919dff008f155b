# app/routers/orders.py
import uuid
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin, require_auth, require_user
from app.database import get_session
from app.models.user import User
from app.repositories.address_repo import AddressRepository
from app.repositories.cart_repo import CartRepository
from app.repositories.notification_repo import NotificationRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.user_repo import UserRepository
from app.schemas.order import (
    CheckoutCreate,
    OrderCreate,
    OrderStats,
    OrderStatus,
    OrderStatusUpdate,
    OrderWithItemsRead,
    PaymentStatusUpdate,
)
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

notification_service = NotificationService(NotificationRepository())
service = OrderService(
    OrderRepository(),
    CartRepository(),
    ProductRepository(),
    AddressRepository(),
    UserRepository(),
    notification_service,
)


# -------- Customer endpoints --------


@router.post(
    "/checkout",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Create an order from the current user's cart.

    Order, items and the emptied cart are committed together.

    Auth:
      - Only role='user' (customer) can checkout.
    """
    return service.checkout(session, current_user, payload)


@router.get("/me", response_model=list[OrderWithItemsRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    skip: int = 0,
    limit: int = 50,
):
    """
    List the authenticated user's orders, newest first, with items.
    """
    return service.list_customer_orders(session, current_user.id, skip, limit)


@router.post("/me/{order_id}/cancel", response_model=OrderWithItemsRead)
def cancel_my_order(
    order_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Cancel one of the caller's orders while it is still pending.
    """
    order = service.cancel_my_order(session, current_user, order_id)
    background_tasks.add_task(notification_service.drain_outbox)
    return order


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[OrderWithItemsRead],
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    status_filter: OrderStatus | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List orders (admin only), newest first, with customer and items.

    Filters: status_filter, date_from / date_to on created_at.
    """
    return service.list_orders(
        session,
        status_filter=status_filter,
        date_from=date_from,
        date_to=date_to,
        skip=skip,
        limit=limit,
    )


@router.post(
    "",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
):
    """
    Create an order with explicit items and prices (admin only).
    """
    return service.create_order(session, payload)


@router.get(
    "/stats",
    response_model=OrderStats,
    dependencies=[Depends(require_admin)],
)
def order_stats(session: Session = Depends(get_session)):
    return service.order_stats(session)


@router.get(
    "/recent",
    response_model=list[OrderWithItemsRead],
    dependencies=[Depends(require_admin)],
)
def recent_orders(
    session: Session = Depends(get_session),
    limit: int = 10,
):
    return service.recent_orders(session, limit)


@router.get("/{order_id}", response_model=OrderWithItemsRead)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get one order with items.

    Admins can read any order; customers only their own.
    """
    return service.get_order(session, order_id, current_user)


@router.patch(
    "/{order_id}/status",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    """
    Move an order along its lifecycle (admin only):

      pending -> confirmed -> preparing -> on_the_way -> completed

    Forward skips are allowed; any non-final status can be cancelled.
    The customer is notified for every status except pending.
    """
    order = service.set_order_status(session, order_id, payload.status)
    background_tasks.add_task(notification_service.drain_outbox)
    return order


@router.patch(
    "/{order_id}/payment-status",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_admin)],
)
def update_payment_status(
    order_id: uuid.UUID,
    payload: PaymentStatusUpdate,
    session: Session = Depends(get_session),
):
    """Update payment status (admin only). Never notifies."""
    return service.set_payment_status(session, order_id, payload.payment_status)
