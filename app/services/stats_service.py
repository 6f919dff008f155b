# app/services/stats_service.py
from datetime import date

from sqlmodel import Session

from app.core.timeutils import as_utc, local_day_start_utc, local_today, to_local
from app.repositories.order_repo import OrderRepository
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import (
    AdminDashboardStats,
    CategoryShare,
    DashboardMetrics,
    MonthlySales,
    PopularProduct,
    RecentOrder,
)

MONTHS_OF_HISTORY = 6

UNCATEGORIZED = "Sin categoría"
CATEGORY_COLORS = ["#6366f1", "#ec4899", "#f59e0b", "#10b981", "#8b5cf6", "#f97316"]


def _month_starts(today: date, count: int) -> list[date]:
    """First day of the last `count` months, oldest first, ending this month."""
    year, month = today.year, today.month
    starts: list[date] = []
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository, order_repo: OrderRepository):
        self.repo = repo
        self.order_repo = order_repo

    def get_metrics(self, session: Session) -> DashboardMetrics:
        """
        conversion_rate = completed orders / all orders, as a percentage
        with one decimal.
        """
        total_orders = self.repo.count_orders(session)
        completed = self.repo.count_orders(session, status="completed")
        conversion = round(completed / total_orders * 100, 1) if total_orders else 0.0

        return DashboardMetrics(
            total_sales=self.repo.completed_sales(session),
            sales_today=self.repo.completed_sales(session, since=local_day_start_utc()),
            total_users=self.repo.count_users(session),
            total_products=self.repo.count_active_products(session),
            pending_orders=self.repo.count_orders(session, status="pending"),
            conversion_rate=conversion,
        )

    def get_recent_orders(self, session: Session, limit: int = 10) -> list[RecentOrder]:
        rows = self.order_repo.list_recent_with_customer(session, limit=limit)
        return [
            RecentOrder(
                id=order.id,
                customer_name=f"{customer.first_name} {customer.last_name}".strip(),
                total_amount=order.total_amount,
                created_at=order.created_at,
                status=order.status,
            )
            for order, customer in rows
        ]

    def get_popular_products(
        self,
        session: Session,
        limit: int = 5,
    ) -> list[PopularProduct]:
        return [
            PopularProduct(
                product_id=product_id,
                name=name,
                total_quantity=int(total_quantity or 0),
            )
            for product_id, name, total_quantity in self.repo.popular_products(
                session, limit=limit
            )
        ]

    def get_monthly_sales(
        self,
        session: Session,
        months: int = MONTHS_OF_HISTORY,
    ) -> list[MonthlySales]:
        """
        Completed sales per calendar month (shop-local), one entry per
        month including months without sales.
        """
        starts = _month_starts(local_today(), months)
        buckets: dict[str, float] = {d.strftime("%Y-%m"): 0.0 for d in starts}

        since = local_day_start_utc(starts[0])
        for created_at, total_amount in self.repo.completed_orders_since(session, since):
            key = to_local(as_utc(created_at)).strftime("%Y-%m")
            if key in buckets:
                buckets[key] += float(total_amount or 0.0)

        return [
            MonthlySales(month=month, total_sales=round(total, 2))
            for month, total in buckets.items()
        ]

    def get_products_by_category(self, session: Session) -> list[CategoryShare]:
        return [
            CategoryShare(
                category=name or UNCATEGORIZED,
                product_count=int(count),
                color=CATEGORY_COLORS[idx % len(CATEGORY_COLORS)],
            )
            for idx, (name, count) in enumerate(
                self.repo.active_products_by_category(session)
            )
        ]

    def get_admin_dashboard_stats(self, session: Session) -> AdminDashboardStats:
        return AdminDashboardStats(
            metrics=self.get_metrics(session),
            recent_orders=self.get_recent_orders(session),
            popular_products=self.get_popular_products(session),
            monthly_sales=self.get_monthly_sales(session),
            products_by_category=self.get_products_by_category(session),
        )
