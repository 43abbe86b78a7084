# app/services/product_service.py
import time
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import ConflictError, NotFoundError
from app.models.product import Product, ProductVariant
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    LowStockItem,
    ProductCreate,
    ProductUpdate,
    ProductWithVariantsRead,
    VariantCreate,
    VariantRead,
    VariantUpdate,
    VariantWithProductRead,
)


class ProductService:
    """
    Business logic for Product & ProductVariant (stock management).

    Responsibilities:
      - SKU generation & uniqueness
      - validation beyond pydantic
      - low stock / available stock views
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _generate_sku(category: str) -> str:
        """
        <CAT>-<6 digits>, e.g. RIN-482913.

        Digits are the tail of the current time in milliseconds.
        """
        prefix = category[:3].upper()
        return f"{prefix}-{str(int(time.time() * 1000))[-6:]}"

    def _ensure_unique_sku(self, session: Session, category: str) -> str:
        """
        Generate SKUs until one is free.
        """
        sku = self._generate_sku(category)
        i = 2
        while self.repo.get_variant_by_sku(session, sku) is not None:
            sku = f"{self._generate_sku(category)}-{i}"
            i += 1
        return sku

    def _check_sku_available(
        self,
        session: Session,
        sku: str,
        exclude_variant_id: uuid.UUID | None = None,
    ) -> None:
        existing = self.repo.get_variant_by_sku(session, sku)
        if existing is not None and existing.id != exclude_variant_id:
            raise ConflictError(f"SKU '{sku}' is already in use", sku=sku)

    # ----- Products -----

    def list_products_with_variants(self, session: Session) -> list[ProductWithVariantsRead]:
        """
        Products newest first, each with all of its variants.
        """
        products = self.repo.list_products(session)
        variants = self.repo.list_variants_for_products(session, [p.id for p in products])

        by_product: dict[uuid.UUID, list[VariantRead]] = {p.id: [] for p in products}
        for v in variants:
            by_product[v.product_id].append(VariantRead.model_validate(v))

        return [
            ProductWithVariantsRead(
                **p.model_dump(),
                product_variants=by_product[p.id],
            )
            for p in products
        ]

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_product_with_variants(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> ProductWithVariantsRead:
        product = self.get_product(session, product_id)
        variants = self.repo.list_variants_for_products(session, [product.id])
        return ProductWithVariantsRead(
            **product.model_dump(),
            product_variants=[VariantRead.model_validate(v) for v in variants],
        )

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
    ) -> ProductWithVariantsRead:
        """
        Create a product together with its first variant.

        - If sku is provided => must be unique (409).
        - Else => generated from the category.
        """
        if payload.sku:
            self._check_sku_available(session, payload.sku)
            sku = payload.sku
        else:
            sku = self._ensure_unique_sku(session, payload.category)

        product = Product(
            name=payload.name,
            description=payload.description,
            category=payload.category,
            image_url=payload.image_url,
        )
        variant = ProductVariant(
            product_id=product.id,
            sku=sku,
            variant_name=payload.variant_name,
            price=payload.price,
            stock_quantity=payload.stock_quantity,
            low_stock_threshold=payload.low_stock_threshold,
        )
        product, variant = self.repo.create_with_variant(session, product, variant)

        return ProductWithVariantsRead(
            **product.model_dump(),
            product_variants=[VariantRead.model_validate(variant)],
        )

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product's descriptive fields.
        """
        product = self.get_product(session, product_id)

        updates = payload.model_dump(exclude_unset=True)
        for field, value in updates.items():
            if field in ("name", "category") and value is None:
                continue
            setattr(product, field, value)

        product.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, product)

    # ----- Variants -----

    def get_variant(self, session: Session, variant_id: uuid.UUID) -> ProductVariant:
        variant = self.repo.get_variant(session, variant_id)
        if not variant:
            raise NotFoundError("Product variant not found")
        return variant

    def create_variant(
        self,
        session: Session,
        payload: VariantCreate,
    ) -> ProductVariant:
        product = self.get_product(session, payload.product_id)

        if payload.sku:
            self._check_sku_available(session, payload.sku)
            sku = payload.sku
        else:
            sku = self._ensure_unique_sku(session, product.category)

        variant = ProductVariant(
            product_id=product.id,
            sku=sku,
            variant_name=payload.variant_name,
            price=payload.price,
            stock_quantity=payload.stock_quantity,
            low_stock_threshold=payload.low_stock_threshold,
        )
        return self.repo.create_variant(session, variant)

    def update_variant(
        self,
        session: Session,
        variant_id: uuid.UUID,
        payload: VariantUpdate,
    ) -> ProductVariant:
        """
        Partial update (stock management edits).

        Setting stock_quantity here is an absolute overwrite and never
        triggers a low stock alert; alerts belong to recorded sales.
        """
        variant = self.get_variant(session, variant_id)

        if payload.sku is not None and payload.sku != variant.sku:
            self._check_sku_available(session, payload.sku, exclude_variant_id=variant.id)
            variant.sku = payload.sku

        if payload.variant_name is not None:
            variant.variant_name = payload.variant_name

        if payload.price is not None:
            variant.price = payload.price

        if payload.stock_quantity is not None:
            variant.stock_quantity = payload.stock_quantity

        if payload.low_stock_threshold is not None:
            variant.low_stock_threshold = payload.low_stock_threshold

        variant.updated_at = datetime.now(timezone.utc)
        return self.repo.update_variant(session, variant)

    def delete_variant(
        self,
        session: Session,
        variant_id: uuid.UUID,
    ) -> None:
        """
        Delete a variant.

        Variants referenced by recorded sales are kept (409) so sales
        history stays complete.
        """
        variant = self.get_variant(session, variant_id)

        if self.repo.count_sale_items_for_variant(session, variant.id) > 0:
            raise ConflictError(
                "Variant has recorded sales and cannot be deleted",
                variant_id=str(variant.id),
            )

        self.repo.delete_variant(session, variant)

    # ----- Stock views -----

    def list_available_variants(self, session: Session) -> list[VariantWithProductRead]:
        """
        Variants that can be sold right now (stock > 0), by product name.
        """
        return [
            VariantWithProductRead(
                **variant.model_dump(),
                product_name=product.name,
                category=product.category,
                image_url=product.image_url,
            )
            for variant, product in self.repo.list_available_variants(session)
        ]

    def list_low_stock_items(self, session: Session) -> list[LowStockItem]:
        """
        Variants at or below their low stock threshold, lowest first.
        """
        return [
            LowStockItem(
                id=variant.id,
                sku=variant.sku,
                variant_name=variant.variant_name,
                product_name=product.name,
                category=product.category,
                stock_quantity=variant.stock_quantity,
                low_stock_threshold=variant.low_stock_threshold,
                price=variant.price,
            )
            for variant, product in self.repo.list_low_stock(session)
        ]
