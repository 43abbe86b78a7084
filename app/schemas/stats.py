# app/schemas/stats.py
import uuid
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

from app.schemas.product import Category, LowStockItem

TimeRange = Literal["daily", "monthly"]


class BestSellingProduct(SQLModel):
    """
    Aggregated stats for top-selling variants.
    """
    model_config = ConfigDict(extra="forbid")

    variant_id: uuid.UUID
    product_name: str
    variant_name: str
    category: Category
    total_sold: int
    total_revenue: Decimal


class DashboardStats(SQLModel):
    model_config = ConfigDict(extra="forbid")

    total_revenue: Decimal
    total_sales: int
    total_items_sold: int
    low_stock_count: int


class AdminDashboard(SQLModel):
    """
    Full payload for admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    stats: DashboardStats
    best_selling: list[BestSellingProduct]
    low_stock_alerts: list[LowStockItem]


class SalesAnalytics(SQLModel):
    """
    Sales aggregated per day ("YYYY-MM-DD") or month ("YYYY-MM").
    """
    model_config = ConfigDict(extra="forbid")

    period: str
    number_of_sales: int
    total_revenue: Decimal
    total_items_sold: int
    average_sale_amount: Decimal
