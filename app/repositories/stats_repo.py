# app/repositories/stats_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.category import Category
from app.models.order import Order, OrderItem
from app.models.product import Product
from app.models.user import User


class StatsRepository:
    """
    Read-only aggregated queries for the admin dashboard.

    Sales figures only count orders with status 'completed'.
    """

    def count_users(self, session: Session) -> int:
        stmt = select(func.count()).select_from(User)
        # SQLModel's Session.exec() -> ScalarResult -> use .one()
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_active_products(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(Product.is_active == True)
        )
        return int(session.exec(stmt).one() or 0)

    def count_orders(self, session: Session, status: str | None = None) -> int:
        stmt = select(func.count()).select_from(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        return int(session.exec(stmt).one() or 0)

    def completed_sales(
        self,
        session: Session,
        since: datetime | None = None,
    ) -> float:
        stmt = select(func.coalesce(func.sum(Order.total_amount), 0.0)).where(
            Order.status == "completed"
        )
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        return float(session.exec(stmt).one() or 0.0)

    def completed_orders_since(
        self,
        session: Session,
        since: datetime,
    ) -> list[tuple[datetime, float]]:
        """
        (created_at, total_amount) of completed orders since `since`.
        Bucketing by month happens in the service so the query stays
        portable across Postgres and SQLite.
        """
        stmt = select(Order.created_at, Order.total_amount).where(
            Order.status == "completed",
            Order.created_at >= since,
        )
        return list(session.exec(stmt).all())

    def popular_products(
        self,
        session: Session,
        limit: int = 5,
    ) -> list[tuple]:
        """
        Top products by quantity sold across non-cancelled orders.
        """
        qty_sum = func.coalesce(func.sum(OrderItem.quantity), 0)

        stmt = (
            select(
                OrderItem.product_id,
                Product.name,
                qty_sum.label("total_quantity"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Order.status != "cancelled")
            .group_by(OrderItem.product_id, Product.name)
            .order_by(qty_sum.desc())
            .limit(limit)
        )

        return list(session.exec(stmt).all())

    def active_products_by_category(self, session: Session) -> list[tuple]:
        """(category name or None, active product count), largest first."""
        product_count = func.count(Product.id)
        stmt = (
            select(Category.name, product_count.label("product_count"))
            .select_from(Product)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(Product.is_active == True)
            .group_by(Category.name)
            .order_by(product_count.desc(), Category.name)
        )
        return list(session.exec(stmt).all())
