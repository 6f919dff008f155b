# app/services/order_service.py
import logging
import uuid
from datetime import datetime, timedelta

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.timeutils import local_day_start_utc, to_local, utcnow
from app.models.order import Order, OrderItem
from app.models.user import User
from app.repositories.address_repo import AddressRepository
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.user_repo import UserRepository
from app.schemas.order import (
    CheckoutCreate,
    OrderCreate,
    OrderItemCreate,
    OrderItemRead,
    OrderStats,
    OrderWithItemsRead,
)
from app.services.notification_service import NotificationService
from app.services.product_service import live_unit_price
from app.services.reservation_grouping import group_by_composite_key
from app.services.snapshots import customer_snapshot, size_snapshot
from app.services.status_rules import ORDER_TRANSITIONS, ensure_transition

logger = logging.getLogger(__name__)

# Fixed promise shown to the customer at checkout
DELIVERY_LEAD = timedelta(hours=1)


def _products_text(names: list[str]) -> str:
    """At most two product names, '...' when there are more."""
    if not names:
        return "tus productos"
    text = ", ".join(names[:2])
    if len(names) > 2:
        text += "..."
    return text


def order_notification(
    new_status: str,
    order: Order,
    product_names: list[str],
) -> tuple[str, str, str] | None:
    """
    (type, title, message) for the customer, or None when the status
    does not notify (pending).
    """
    p = _products_text(product_names)

    if new_status == "confirmed":
        return (
            "order_confirmed",
            "Pedido Confirmado",
            f"Tu pedido de {p} ha sido confirmado. Pronto comenzaremos a "
            f"prepararlo. Total: S/ {order.total_amount:.2f}",
        )
    if new_status == "preparing":
        return (
            "order_preparing",
            "Pedido en Preparación",
            f"Tu pedido de {p} está siendo preparado con mucho cuidado. "
            "¡Pronto estará listo!",
        )
    if new_status == "on_the_way":
        eta = (
            to_local(order.estimated_delivery).strftime("%H:%M")
            if order.estimated_delivery
            else "pronto"
        )
        return (
            "order_on_the_way",
            "Pedido en Camino",
            f"¡Tu pedido de {p} está en camino! Llegará aproximadamente a las {eta}",
        )
    if new_status == "completed":
        return (
            "order_completed",
            "Pedido Entregado",
            f"¡Tu pedido ha sido entregado! Gracias por tu compra de {p}. "
            "¡Esperamos que lo disfrutes!",
        )
    if new_status == "cancelled":
        return (
            "order_cancelled",
            "Pedido Cancelado",
            f"Tu pedido de {p} ha sido cancelado. Si tienes alguna duda, contáctanos.",
        )
    return None


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create orders (admin with explicit items, customer from cart)
        with header, items and cart clearing in one commit
      - Enforce the status transition table
      - Stage the customer notification in the same transaction as
        the status change
      - Payment status updates (never notify)
      - Admin and account views with items + customer snapshot
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        address_repo: AddressRepository,
        user_repo: UserRepository,
        notification_service: NotificationService,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.address_repo = address_repo
        self.user_repo = user_repo
        self.notification_service = notification_service

    # -------- Creation --------

    def create_order(
        self,
        session: Session,
        payload: OrderCreate,
    ) -> OrderWithItemsRead:
        """
        Admin: create an order with explicit line items and prices.
        """
        if not self.user_repo.get_by_id(session, payload.customer_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cliente no encontrado",
            )

        products = self.product_repo.get_many(
            session, {i.product_id for i in payload.items}
        )
        missing = [str(i.product_id) for i in payload.items if i.product_id not in products]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Producto no encontrado: {', '.join(missing)}",
            )

        order = self._stage_order(
            session,
            customer_id=payload.customer_id,
            items=payload.items,
            payment_method=payload.payment_method,
            address=payload.address,
            notes=payload.notes,
        )
        session.commit()
        session.refresh(order)
        logger.info(f"Order {order.id} created for customer {order.customer_id}")

        return self._build_order_dtos(session, [order])[0]

    def checkout(
        self,
        session: Session,
        customer: User,
        payload: CheckoutCreate,
    ) -> OrderWithItemsRead:
        """
        Convert the customer's cart into an order.

        Steps:
          1. Load cart; 400 if empty.
          2. Resolve the delivery address (saved or free text).
          3. Snapshot live unit prices (effective price + size surcharge).
          4. Stage order + items, stage cart clearing.
          5. Single commit.
        """
        cart_items = self.cart_repo.list_for_user(session, customer.id)
        if not cart_items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El carrito está vacío",
            )

        if payload.address_id is not None:
            saved = self.address_repo.get_owned(session, customer.id, payload.address_id)
            if not saved:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Dirección no encontrada",
                )
            address_text = saved.as_text()
        else:
            address_text = payload.address

        products = self.product_repo.get_many(
            session, {ci.product_id for ci in cart_items}
        )
        sizes = self.product_repo.get_sizes(
            session, {ci.size_id for ci in cart_items if ci.size_id}
        )

        lines: list[OrderItemCreate] = []
        for ci in cart_items:
            product = products.get(ci.product_id)
            if not product or not product.is_active:
                name = product.name if product else str(ci.product_id)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"El producto {name} ya no está disponible",
                )
            size = sizes.get(ci.size_id) if ci.size_id else None
            lines.append(
                OrderItemCreate(
                    product_id=ci.product_id,
                    size_id=ci.size_id,
                    quantity=ci.quantity,
                    unit_price=live_unit_price(product, size),
                )
            )

        order = self._stage_order(
            session,
            customer_id=customer.id,
            items=lines,
            payment_method=payload.payment_method,
            address=address_text,
            notes=payload.notes,
        )
        self.cart_repo.clear_user_cart(session, customer.id, commit=False)

        session.commit()
        session.refresh(order)
        logger.info(
            f"Checkout: order {order.id} for customer {customer.id} "
            f"({len(lines)} items, S/ {order.total_amount:.2f})"
        )

        return self._build_order_dtos(session, [order])[0]

    def _stage_order(
        self,
        session: Session,
        customer_id: uuid.UUID,
        items: list[OrderItemCreate],
        payment_method: str,
        address: str,
        notes: str,
    ) -> Order:
        """
        Add header + line items to the session without committing.
        total_amount is the sum of the same subtotals stored on the items.
        """
        if not items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El pedido debe tener al menos un producto",
            )

        subtotals = [i.quantity * i.unit_price for i in items]
        now = utcnow()

        order = Order(
            customer_id=customer_id,
            total_amount=sum(subtotals),
            status="pending",
            payment_status="pending",
            payment_method=payment_method,
            address=address,
            notes=notes,
            estimated_delivery=now + DELIVERY_LEAD,
            created_at=now,
            updated_at=now,
        )
        order = self.order_repo.create_order(session, order)

        self.order_repo.create_items(
            session,
            [
                OrderItem(
                    order_id=order.id,
                    product_id=i.product_id,
                    size_id=i.size_id,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    subtotal=subtotal,
                )
                for i, subtotal in zip(items, subtotals)
            ],
        )
        return order

    # -------- Status engine --------

    def set_order_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        new_status: str,
    ) -> OrderWithItemsRead:
        """
        Move an order to `new_status` and notify the customer.

        - Same status => written again and the customer is re-notified.
        - Illegal transition => 400.
        - Status, updated_at and the notification commit together.
        """
        order = self._get_order_or_404(session, order_id)
        current = order.status

        if current != new_status:
            ensure_transition(ORDER_TRANSITIONS, current, new_status)

        order.status = new_status
        order.updated_at = utcnow()
        self.order_repo.update_order(session, order)

        rows = self.order_repo.list_items_for_orders(session, [order.id])
        names = [product.name for _, product, _ in rows]
        note = order_notification(new_status, order, names)
        if note is not None:
            type_, title, message = note
            self.notification_service.stage_notification(
                session,
                user_id=order.customer_id,
                title=title,
                message=message,
                type_=type_,
                related_id=order.id,
            )

        session.commit()
        session.refresh(order)
        logger.info(f"Order {order.id}: {current} -> {new_status}")

        return self._build_order_dtos(session, [order])[0]

    def set_payment_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        new_payment_status: str,
    ) -> OrderWithItemsRead:
        order = self._get_order_or_404(session, order_id)
        order.payment_status = new_payment_status
        order.updated_at = utcnow()
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        return self._build_order_dtos(session, [order])[0]

    def cancel_my_order(
        self,
        session: Session,
        customer: User,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        """
        Customer-initiated cancellation, only while the order is pending.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.customer_id != customer.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Pedido no encontrado",
            )
        if order.status != "pending":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Solo se pueden cancelar pedidos pendientes",
            )
        return self.set_order_status(session, order_id, "cancelled")

    # -------- Reads --------

    def list_orders(
        self,
        session: Session,
        status_filter: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderWithItemsRead]:
        orders = self.order_repo.list_all(
            session,
            status=status_filter,
            date_from=date_from,
            date_to=date_to,
            skip=skip,
            limit=limit,
        )
        return self._build_order_dtos(session, orders)

    def recent_orders(
        self,
        session: Session,
        limit: int = 10,
    ) -> list[OrderWithItemsRead]:
        return self.list_orders(session, limit=limit)

    def list_customer_orders(
        self,
        session: Session,
        customer_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderWithItemsRead]:
        orders = self.order_repo.list_for_customer(session, customer_id, skip, limit)
        return self._build_order_dtos(session, orders)

    def get_order(
        self,
        session: Session,
        order_id: uuid.UUID,
        user: User,
    ) -> OrderWithItemsRead:
        """
        Admins see any order; everyone else only their own (404 otherwise).
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or (user.role != "admin" and order.customer_id != user.id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Pedido no encontrado",
            )
        return self._build_order_dtos(session, [order])[0]

    def order_stats(self, session: Session) -> OrderStats:
        start = local_day_start_utc()
        return OrderStats(
            total_orders=self.order_repo.count(session),
            pending_orders=self.order_repo.count(session, status="pending"),
            revenue_today=self.order_repo.revenue_between(
                session,
                start,
                start + timedelta(days=1),
                payment_status="paid",
            ),
        )

    # -------- Helpers --------

    def _get_order_or_404(self, session: Session, order_id: uuid.UUID) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Pedido no encontrado",
            )
        return order

    def _build_order_dtos(
        self,
        session: Session,
        orders: list[Order],
    ) -> list[OrderWithItemsRead]:
        """
        Compose OrderWithItemsRead for several orders with one items query.
        """
        rows = self.order_repo.list_items_for_orders(session, [o.id for o in orders])
        items_by_order = dict(group_by_composite_key(rows, lambda r: r[0].order_id))

        customers: dict[uuid.UUID, User | None] = {}
        result: list[OrderWithItemsRead] = []

        for order in orders:
            if order.customer_id not in customers:
                customers[order.customer_id] = self.user_repo.get_by_id(
                    session, order.customer_id
                )
            customer = customers[order.customer_id]

            item_dtos = [
                OrderItemRead(
                    id=it.id,
                    order_id=it.order_id,
                    product_id=it.product_id,
                    product_name=product.name,
                    size_id=it.size_id,
                    size=size_snapshot(size),
                    quantity=it.quantity,
                    unit_price=it.unit_price,
                    subtotal=it.subtotal,
                )
                for it, product, size in items_by_order.get(order.id, [])
            ]

            result.append(
                OrderWithItemsRead(
                    id=order.id,
                    customer_id=order.customer_id,
                    total_amount=order.total_amount,
                    status=order.status,
                    payment_status=order.payment_status,
                    payment_method=order.payment_method,
                    address=order.address,
                    notes=order.notes,
                    estimated_delivery=order.estimated_delivery,
                    created_at=order.created_at,
                    updated_at=order.updated_at,
                    items=item_dtos,
                    customer=customer_snapshot(customer) if customer else None,
                )
            )

        return result
