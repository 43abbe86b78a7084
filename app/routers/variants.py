# app/routers/variants.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin, require_auth
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    LowStockItem,
    VariantCreate,
    VariantRead,
    VariantUpdate,
    VariantWithProductRead,
)
from app.services.product_service import ProductService

router = APIRouter(prefix="/variants", tags=["Variants"])

repo = ProductRepository()
service = ProductService(repo)


# -------- Any authenticated role --------


@router.get(
    "/available",
    response_model=list[VariantWithProductRead],
    dependencies=[Depends(require_auth)],
)
def list_available_variants(session: Session = Depends(get_session)):
    """
    Variants in stock, for building a sale cart.
    """
    return service.list_available_variants(session)


# -------- Admin endpoints --------


@router.get(
    "/low-stock",
    response_model=list[LowStockItem],
    dependencies=[Depends(require_admin)],
)
def list_low_stock(session: Session = Depends(get_session)):
    """
    Variants at or below their low stock threshold, lowest stock first.
    """
    return service.list_low_stock_items(session)


@router.post(
    "",
    response_model=VariantRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_variant(
    payload: VariantCreate,
    session: Session = Depends(get_session),
):
    """
    Add a variant to an existing product (admin only).
    """
    return service.create_variant(session, payload)


@router.patch(
    "/{variant_id}",
    response_model=VariantRead,
    dependencies=[Depends(require_admin)],
)
def update_variant(
    variant_id: uuid.UUID,
    payload: VariantUpdate,
    session: Session = Depends(get_session),
):
    """
    Edit a variant: name, SKU, price, stock, threshold (admin only).
    """
    return service.update_variant(session, variant_id, payload)


@router.delete(
    "/{variant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_variant(
    variant_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a variant without recorded sales (admin only).
    """
    service.delete_variant(session, variant_id)
    return None
