# app/services/stats_service.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlmodel import Session

from app.core.errors import SaleValidationError
from app.repositories.stats_repo import StatsRepository
from app.services.product_service import ProductService
from app.schemas.stats import (
    AdminDashboard,
    BestSellingProduct,
    DashboardStats,
    SalesAnalytics,
    TimeRange,
)

CENTS = Decimal("0.01")

BEST_SELLING_LIMIT = 10


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository, product_service: ProductService):
        self.repo = repo
        self.product_service = product_service

    def get_dashboard(
        self,
        session: Session,
        best_selling_limit: int = BEST_SELLING_LIMIT,
    ) -> AdminDashboard:
        stats = DashboardStats(
            total_revenue=self.repo.total_revenue(session),
            total_sales=self.repo.count_sales(session),
            total_items_sold=self.repo.total_items_sold(session),
            low_stock_count=self.repo.count_low_stock(session),
        )

        best_selling: list[BestSellingProduct] = []
        for variant_id, product_name, variant_name, category, total_sold, revenue in self.repo.best_selling(
            session, limit=best_selling_limit
        ):
            best_selling.append(
                BestSellingProduct(
                    variant_id=variant_id,
                    product_name=product_name,
                    variant_name=variant_name,
                    category=category,
                    total_sold=int(total_sold or 0),
                    total_revenue=Decimal(str(revenue or 0)).quantize(CENTS, rounding=ROUND_HALF_UP),
                )
            )

        return AdminDashboard(
            stats=stats,
            best_selling=best_selling,
            low_stock_alerts=self.product_service.list_low_stock_items(session),
        )

    def get_sales_analytics(
        self,
        session: Session,
        time_range: TimeRange = "daily",
        periods: int | None = None,
    ) -> list[SalesAnalytics]:
        """
        Sales grouped per day or per month, oldest period first.

        `periods` limits the result to the last N days/months (counting
        the current one). Periods without sales are omitted.
        """
        if periods is not None and periods < 1:
            raise SaleValidationError("periods must be >= 1")

        since = self._period_start(time_range, periods) if periods else None
        fmt = "%Y-%m-%d" if time_range == "daily" else "%Y-%m"

        buckets: dict[str, dict] = {}
        for created_at, total_amount, items_sold in self.repo.sales_with_item_counts(session, since=since):
            key = created_at.strftime(fmt)
            bucket = buckets.setdefault(key, {"count": 0, "revenue": Decimal("0"), "items": 0})
            bucket["count"] += 1
            bucket["revenue"] += Decimal(str(total_amount or 0))
            bucket["items"] += int(items_sold or 0)

        result: list[SalesAnalytics] = []
        for period in sorted(buckets):
            b = buckets[period]
            result.append(
                SalesAnalytics(
                    period=period,
                    number_of_sales=b["count"],
                    total_revenue=b["revenue"].quantize(CENTS, rounding=ROUND_HALF_UP),
                    total_items_sold=b["items"],
                    average_sale_amount=(b["revenue"] / b["count"]).quantize(CENTS, rounding=ROUND_HALF_UP),
                )
            )
        return result

    @staticmethod
    def _period_start(time_range: TimeRange, periods: int) -> datetime:
        today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        if time_range == "daily":
            return today - timedelta(days=periods - 1)

        year, month = today.year, today.month - (periods - 1)
        while month < 1:
            month += 12
            year -= 1
        return today.replace(year=year, month=month, day=1)
