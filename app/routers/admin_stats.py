# app/routers/admin_stats.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
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
from app.services.stats_service import StatsService

router = APIRouter(
    prefix="/admin/stats",
    tags=["Admin Stats"],
    dependencies=[Depends(require_admin)],
)

service = StatsService(StatsRepository(), OrderRepository())


@router.get("", response_model=AdminDashboardStats)
def get_admin_dashboard_stats(session: Session = Depends(get_session)):
    """
    Everything the dashboard home renders in one call.

    Only accessible to users with role='admin'.
    """
    return service.get_admin_dashboard_stats(session)


@router.get("/metrics", response_model=DashboardMetrics)
def get_metrics(session: Session = Depends(get_session)):
    return service.get_metrics(session)


@router.get("/recent-orders", response_model=list[RecentOrder])
def get_recent_orders(
    session: Session = Depends(get_session),
    limit: int = 10,
):
    return service.get_recent_orders(session, limit)


@router.get("/popular-products", response_model=list[PopularProduct])
def get_popular_products(
    session: Session = Depends(get_session),
    limit: int = 5,
):
    return service.get_popular_products(session, limit)


@router.get("/monthly-sales", response_model=list[MonthlySales])
def get_monthly_sales(session: Session = Depends(get_session)):
    """Completed sales for each of the last six months."""
    return service.get_monthly_sales(session)


@router.get("/products-by-category", response_model=list[CategoryShare])
def get_products_by_category(session: Session = Depends(get_session)):
    """Active products per category; uncategorized ones are grouped together."""
    return service.get_products_by_category(session)
