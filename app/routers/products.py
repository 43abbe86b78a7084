# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    ProductWithVariantsRead,
)
from app.services.product_service import ProductService

router = APIRouter(
    prefix="/products",
    tags=["Products"],
    dependencies=[Depends(require_admin)],
)

repo = ProductRepository()
service = ProductService(repo)


@router.get("", response_model=list[ProductWithVariantsRead])
def list_products(session: Session = Depends(get_session)):
    """
    List products with their variants, newest first (admin only).
    """
    return service.list_products_with_variants(session)


@router.get("/{product_id}", response_model=ProductWithVariantsRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a single product with its variants (admin only).
    """
    return service.get_product_with_variants(session, product_id)


@router.post(
    "",
    response_model=ProductWithVariantsRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product together with its first variant (admin only).

    - `sku` is generated from the category when omitted.
    """
    return service.create_product(session, payload)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Update an existing product (admin only).
    """
    return service.update_product(session, product_id, payload)
