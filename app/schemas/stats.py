# app/schemas/stats.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel

from app.schemas.order import OrderStatus


class DashboardMetrics(SQLModel):
    """
    Headline numbers for the admin dashboard.

    Sales only count completed orders.
    """
    model_config = ConfigDict(extra="forbid")

    total_sales: float
    sales_today: float
    total_users: int
    total_products: int
    pending_orders: int
    conversion_rate: float


class RecentOrder(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    customer_name: str
    total_amount: float
    created_at: datetime
    status: OrderStatus


class PopularProduct(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    name: str
    total_quantity: int


class MonthlySales(SQLModel):
    """
    Completed sales for one calendar month ("YYYY-MM").
    """
    model_config = ConfigDict(extra="forbid")

    month: str
    total_sales: float


class CategoryShare(SQLModel):
    """Active products in one category, with the chart colour to draw it in."""
    model_config = ConfigDict(extra="forbid")

    category: str
    product_count: int
    color: str


class AdminDashboardStats(SQLModel):
    """
    Full payload for admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    metrics: DashboardMetrics
    recent_orders: list[RecentOrder]
    popular_products: list[PopularProduct]
    monthly_sales: list[MonthlySales]
    products_by_category: list[CategoryShare]
