# app/routers/dashboard.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import AdminDashboard, SalesAnalytics, TimeRange
from app.services.product_service import ProductService
from app.services.stats_service import StatsService

router = APIRouter(
    prefix="/admin/dashboard",
    tags=["Admin Dashboard"],
    dependencies=[Depends(require_admin)],
)

repo = StatsRepository()
service = StatsService(repo, ProductService(ProductRepository()))


@router.get("", response_model=AdminDashboard)
def get_dashboard(session: Session = Depends(get_session)):
    """
    Revenue, sales and stock overview for the admin dashboard.

    Includes the 10 best-selling variants and every low stock variant.
    """
    return service.get_dashboard(session)


@router.get("/analytics", response_model=list[SalesAnalytics])
def get_sales_analytics(
    session: Session = Depends(get_session),
    time_range: TimeRange = Query(default="daily", alias="range"),
    periods: int | None = Query(default=None, ge=1, le=366),
):
    """
    Sales aggregated per day or month, oldest first.

    Query params (optional):
      - range: "daily" | "monthly" (default daily)
      - periods: only the last N days/months
    """
    return service.get_sales_analytics(session, time_range=time_range, periods=periods)
