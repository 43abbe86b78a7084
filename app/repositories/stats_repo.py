# app/repositories/stats_repo.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, col, select

from app.models.product import Product, ProductVariant
from app.models.sale import Sale, SaleItem


class StatsRepository:
    """
    Read-only aggregated queries for admin dashboard.
    """

    def total_revenue(self, session: Session) -> Decimal:
        stmt = select(func.coalesce(func.sum(Sale.total_amount), 0))
        value = session.exec(stmt).one()
        return Decimal(str(value or 0))

    def count_sales(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Sale)
        value = session.exec(stmt).one()
        return int(value or 0)

    def total_items_sold(self, session: Session) -> int:
        stmt = select(func.coalesce(func.sum(SaleItem.quantity_sold), 0))
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_low_stock(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(ProductVariant)
            .where(ProductVariant.stock_quantity <= ProductVariant.low_stock_threshold)
        )
        value = session.exec(stmt).one()
        return int(value or 0)

    def best_selling(
        self,
        session: Session,
        limit: int = 10,
    ) -> list[tuple]:
        """
        Top variants by quantity sold.

        Revenue uses price_at_sale, not the current catalog price.
        """
        qty_sum = func.coalesce(func.sum(SaleItem.quantity_sold), 0)
        revenue_sum = func.coalesce(
            func.sum(SaleItem.quantity_sold * SaleItem.price_at_sale),
            0,
        )

        stmt = (
            select(
                SaleItem.variant_id,
                Product.name,
                ProductVariant.variant_name,
                Product.category,
                qty_sum.label("total_sold"),
                revenue_sum.label("total_revenue"),
            )
            .join(ProductVariant, ProductVariant.id == SaleItem.variant_id)
            .join(Product, Product.id == ProductVariant.product_id)
            .group_by(
                SaleItem.variant_id,
                Product.name,
                ProductVariant.variant_name,
                Product.category,
            )
            .order_by(qty_sum.desc(), Product.name)
            .limit(limit)
        )

        return list(session.exec(stmt).all())

    def sales_with_item_counts(
        self,
        session: Session,
        since: datetime | None = None,
    ) -> list[tuple]:
        """
        (created_at, total_amount, items_sold) per sale, oldest first.

        Bucketing into days/months happens in the service so the query
        stays portable across Postgres and SQLite.
        """
        items_sold = func.coalesce(func.sum(SaleItem.quantity_sold), 0)

        stmt = (
            select(
                Sale.created_at,
                Sale.total_amount,
                items_sold.label("items_sold"),
            )
            .outerjoin(SaleItem, SaleItem.sale_id == Sale.id)
            .group_by(Sale.id, Sale.created_at, Sale.total_amount)
            .order_by(col(Sale.created_at))
        )
        if since is not None:
            stmt = stmt.where(Sale.created_at >= since)

        return list(session.exec(stmt).all())
