# app/repositories/order_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, col, select

from app.models.order import Order, OrderItem
from app.models.product import Product, ProductSize
from app.models.user import User


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation and status changes are
        multi-step transactions. The service calls session.commit().
    """

    # ---- Orders ----

    def list_for_customer(
        self,
        session: Session,
        customer_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def list_all(
        self,
        session: Session,
        status: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        if date_from:
            stmt = stmt.where(Order.created_at >= date_from)
        if date_to:
            stmt = stmt.where(Order.created_at <= date_to)
        stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def list_recent_with_customer(
        self,
        session: Session,
        limit: int = 10,
    ) -> list[tuple[Order, User]]:
        stmt = (
            select(Order, User)
            .join(User, User.id == Order.customer_id)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        return order

    def count(self, session: Session, status: str | None = None) -> int:
        stmt = select(func.count()).select_from(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        return int(session.exec(stmt).one() or 0)

    def revenue_between(
        self,
        session: Session,
        start: datetime,
        end: datetime,
        status: str | None = None,
        payment_status: str | None = None,
    ) -> float:
        stmt = select(func.coalesce(func.sum(Order.total_amount), 0.0)).where(
            Order.created_at >= start,
            Order.created_at < end,
        )
        if status:
            stmt = stmt.where(Order.status == status)
        if payment_status:
            stmt = stmt.where(Order.payment_status == payment_status)
        return float(session.exec(stmt).one() or 0.0)

    # ---- Order items ----

    def list_items_for_orders(
        self,
        session: Session,
        order_ids: list[uuid.UUID],
    ) -> list[tuple[OrderItem, Product, ProductSize | None]]:
        """
        Line items for several orders, joined with product and
        (optional) size, in insertion order.
        """
        if not order_ids:
            return []
        stmt = (
            select(OrderItem, Product, ProductSize)
            .join(Product, Product.id == OrderItem.product_id)
            .join(ProductSize, ProductSize.id == OrderItem.size_id, isouter=True)
            .where(col(OrderItem.order_id).in_(order_ids))
        )
        return list(session.exec(stmt).all())

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        return items
