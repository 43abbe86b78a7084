# app/repositories/sale_repo.py
import uuid
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, col, select

from app.models.product import Product, ProductVariant
from app.models.sale import Sale, SaleItem


class SaleRepository:
    """
    Data access layer for sales and sale_items.

    NOTE:
      - No commits here; recording a sale is a multi-step operation.
        The service is responsible for calling session.commit().
      - Sales and their items are append-only: there is no update/delete.
    """

    # ---- Sales ----

    def get_by_id(self, session: Session, sale_id: uuid.UUID) -> Sale | None:
        return session.get(Sale, sale_id)

    def list_sales(
        self,
        session: Session,
        user_id: uuid.UUID | None = None,
        limit: int | None = None,
    ) -> list[Sale]:
        """
        Sales newest first, optionally only those recorded by user_id.
        """
        stmt = select(Sale).order_by(col(Sale.created_at).desc())
        if user_id is not None:
            stmt = stmt.where(Sale.user_id == user_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.exec(stmt).all())

    def summary(
        self,
        session: Session,
        user_id: uuid.UUID | None = None,
    ) -> tuple[Decimal, int]:
        """(total revenue, number of sales), optionally for one user."""
        stmt = select(
            func.coalesce(func.sum(Sale.total_amount), 0),
            func.count(Sale.id),
        )
        if user_id is not None:
            stmt = stmt.where(Sale.user_id == user_id)
        revenue, count = session.exec(stmt).one()
        return Decimal(str(revenue or 0)), int(count or 0)

    def create_sale(self, session: Session, sale: Sale) -> Sale:
        """
        Insert a Sale without committing, but ensure id is populated.
        """
        session.add(sale)
        session.flush()  # Assign PK
        session.refresh(sale)
        return sale

    # ---- Sale items ----

    def create_item(self, session: Session, item: SaleItem) -> SaleItem:
        session.add(item)
        session.flush()
        session.refresh(item)
        return item

    def list_items_with_details(
        self,
        session: Session,
        sale_ids: list[uuid.UUID],
    ) -> list[tuple[SaleItem, ProductVariant | None, Product | None]]:
        """
        Items of the given sales with their variant and product, in
        insertion order.
        """
        if not sale_ids:
            return []
        stmt = (
            select(SaleItem, ProductVariant, Product)
            .outerjoin(ProductVariant, ProductVariant.id == SaleItem.variant_id)
            .outerjoin(Product, Product.id == ProductVariant.product_id)
            .where(col(SaleItem.sale_id).in_(sale_ids))
            .order_by(SaleItem.created_at)
        )
        return list(session.exec(stmt).all())
