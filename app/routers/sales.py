# app/routers/sales.py
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.core.auth import require_auth
from app.core.config import get_settings
from app.core.errors import AppError
from app.database import get_session
from app.models.profile import Profile
from app.repositories.product_repo import ProductRepository
from app.repositories.profile_repo import ProfileRepository
from app.repositories.sale_repo import SaleRepository
from app.schemas.sale import (
    LowStockEvent,
    SaleCreate,
    SaleWithItemsRead,
    SalesSummary,
)
from app.services.notification_service import NotificationService
from app.services.sale_service import SaleService

settings = get_settings()

router = APIRouter(prefix="/sales", tags=["Sales"])

sale_repo = SaleRepository()
product_repo = ProductRepository()
service = SaleService(sale_repo, product_repo, atomic=settings.SALES_ATOMIC_CHECKOUT)
notifier = NotificationService(ProfileRepository())


@router.post(
    "",
    response_model=SaleWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def record_sale(
    payload: SaleCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Record a sale from a cart and decrement stock.

    Auth:
      - admin or staff; the sale is recorded as the caller.

    Low stock SMS alerts are sent after the response, best-effort.
    A failed alert never fails the sale, and alerts for stock already
    decremented are sent even when a later line fails.
    """

    def schedule_alert(event: LowStockEvent) -> None:
        background_tasks.add_task(notifier.alert_low_stock, event)

    try:
        return service.record_sale(session, current, payload.items, on_low_stock=schedule_alert)
    except AppError as exc:
        # A failed line does not undo earlier committed decrements, so
        # their alerts still have to go out with the error response.
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            background=background_tasks,
        )


@router.get("", response_model=list[SaleWithItemsRead])
def list_sales(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
    limit: int | None = Query(default=None, ge=1, le=500),
):
    """
    Sales history with items, newest first.

    - admin: every sale
    - staff: only the sales they recorded
    """
    return service.list_sales(session, current, limit=limit)


@router.get("/summary", response_model=SalesSummary)
def sales_summary(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Total revenue and number of sales, scoped like the history.
    """
    return service.summary(session, current)


@router.get("/{sale_id}", response_model=SaleWithItemsRead)
def get_sale(
    sale_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    One sale with its items. Staff can only read their own sales.
    """
    return service.get_sale(session, current, sale_id)
