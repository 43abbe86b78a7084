# app/repositories/product_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlmodel import Session, col, select

from app.models.product import Product, ProductVariant
from app.models.sale import SaleItem


class ProductRepository:
    """
    Data access layer for Product & ProductVariant.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    - Stock methods used by the sales flow do NOT commit; the caller
      decides the transaction boundary.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def list_products(self, session: Session) -> list[Product]:
        stmt = select(Product).order_by(col(Product.created_at).desc())
        return list(session.exec(stmt).all())

    def create_with_variant(
        self,
        session: Session,
        product: Product,
        variant: ProductVariant,
    ) -> tuple[Product, ProductVariant]:
        """
        Insert a product and its first variant in a single commit.
        """
        session.add(product)
        session.flush()  # Assign PK
        variant.product_id = product.id
        session.add(variant)
        session.commit()
        session.refresh(product)
        session.refresh(variant)
        return product, variant

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    # ----- Variants -----

    def get_variant(self, session: Session, variant_id: uuid.UUID) -> ProductVariant | None:
        return session.get(ProductVariant, variant_id)

    def get_variant_by_sku(self, session: Session, sku: str) -> ProductVariant | None:
        stmt = select(ProductVariant).where(ProductVariant.sku == sku)
        return session.exec(stmt).first()

    def get_variant_with_product(
        self,
        session: Session,
        variant_id: uuid.UUID,
    ) -> tuple[ProductVariant, Product] | None:
        """
        Read a variant and its product straight from the database.

        populate_existing overwrites whatever the session already holds,
        so every call is a fresh read of stock_quantity.
        """
        stmt = (
            select(ProductVariant, Product)
            .join(Product, Product.id == ProductVariant.product_id)
            .where(ProductVariant.id == variant_id)
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    def list_variants_for_products(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> list[ProductVariant]:
        if not product_ids:
            return []
        stmt = (
            select(ProductVariant)
            .where(col(ProductVariant.product_id).in_(product_ids))
            .order_by(ProductVariant.created_at)
        )
        return list(session.exec(stmt).all())

    def list_available_variants(self, session: Session) -> list[tuple[ProductVariant, Product]]:
        """Variants with stock left, ordered by product name."""
        stmt = (
            select(ProductVariant, Product)
            .join(Product, Product.id == ProductVariant.product_id)
            .where(ProductVariant.stock_quantity > 0)
            .order_by(Product.name, ProductVariant.variant_name)
        )
        return list(session.exec(stmt).all())

    def list_low_stock(self, session: Session) -> list[tuple[ProductVariant, Product]]:
        """Variants at or below their threshold, lowest stock first."""
        stmt = (
            select(ProductVariant, Product)
            .join(Product, Product.id == ProductVariant.product_id)
            .where(ProductVariant.stock_quantity <= ProductVariant.low_stock_threshold)
            .order_by(ProductVariant.stock_quantity, Product.name)
        )
        return list(session.exec(stmt).all())

    def count_sale_items_for_variant(self, session: Session, variant_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(SaleItem).where(SaleItem.variant_id == variant_id)
        return int(session.exec(stmt).one() or 0)

    def create_variant(self, session: Session, variant: ProductVariant) -> ProductVariant:
        session.add(variant)
        session.commit()
        session.refresh(variant)
        return variant

    def update_variant(self, session: Session, variant: ProductVariant) -> ProductVariant:
        session.add(variant)
        session.commit()
        session.refresh(variant)
        return variant

    def delete_variant(self, session: Session, variant: ProductVariant) -> None:
        session.delete(variant)
        session.commit()

    # ----- Stock mutation (no commit) -----

    def set_stock_quantity(
        self,
        session: Session,
        variant: ProductVariant,
        stock_quantity: int,
    ) -> ProductVariant:
        """
        Overwrite stock_quantity with a value computed by the caller.
        No floor check: the value is written as given.
        """
        variant.stock_quantity = stock_quantity
        variant.updated_at = datetime.now(timezone.utc)
        session.add(variant)
        session.flush()
        return variant

    def decrement_stock_if_available(
        self,
        session: Session,
        variant_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        Atomic conditional decrement:

            UPDATE product_variants
               SET stock_quantity = stock_quantity - :quantity
             WHERE id = :variant_id AND stock_quantity >= :quantity

        Returns False when no row matched (unknown variant or not enough stock).
        """
        stmt = (
            update(ProductVariant)
            .where(col(ProductVariant.id) == variant_id)
            .where(col(ProductVariant.stock_quantity) >= quantity)
            .values(
                stock_quantity=col(ProductVariant.stock_quantity) - quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        return result.rowcount == 1
