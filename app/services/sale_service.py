# app/services/sale_service.py
import logging
import uuid
from contextlib import contextmanager
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.errors import (
    AppError,
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    SaleValidationError,
)
from app.models.product import Product, ProductVariant
from app.models.profile import Profile
from app.models.sale import Sale, SaleItem
from app.repositories.product_repo import ProductRepository
from app.repositories.sale_repo import SaleRepository
from app.schemas.sale import (
    CartLine,
    LowStockEvent,
    SaleItemRead,
    SaleWithItemsRead,
    SalesSummary,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

LowStockCallback = Callable[[LowStockEvent], None]


def compute_total(lines: list[CartLine]) -> Decimal:
    """
    Σ price_at_sale × quantity, rounded half-up to cents.

    Uses the price each line was sold at, never the catalog price.
    """
    total = sum(
        (Decimal(line.price_at_sale) * line.quantity for line in lines),
        Decimal("0"),
    )
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def crosses_threshold(previous_stock: int, new_stock: int, threshold: int) -> bool:
    """
    True only when this decrement moved stock from above the threshold
    to at-or-below it.
    """
    return new_stock <= threshold < previous_stock


class SaleService:
    """
    Business logic for sales.

    Responsibilities:
      - Validate cart lines against current stock
      - Compute the sale total from the prices charged
      - Persist the sale header and one item per cart line
      - Decrement stock per line, in cart order
      - Report low stock threshold crossings (fire-and-forget)
      - Sales history and totals, scoped by role

    Recording modes:

      atomic=False (default)
        Each write is committed on its own. Stock is validated in a
        read-only pass and decremented later from a fresh read, with no
        lock in between: two concurrent sales of the same variant can
        both pass validation and oversell it (stock may go negative).
        A PersistenceError part-way through leaves the header, earlier
        items and earlier decrements in place.

      atomic=True
        Header, items and decrements are one transaction. Each decrement
        is a conditional UPDATE (stock_quantity >= quantity) whose row
        count is checked, so stock never goes negative and any failure
        rolls the whole sale back.
    """

    def __init__(
        self,
        sale_repo: SaleRepository,
        product_repo: ProductRepository,
        atomic: bool = False,
    ):
        self.sale_repo = sale_repo
        self.product_repo = product_repo
        self.atomic = atomic

    # -------- Recording --------

    def record_sale(
        self,
        session: Session,
        actor: Profile,
        lines: list[CartLine],
        on_low_stock: LowStockCallback | None = None,
    ) -> SaleWithItemsRead:
        """
        Record a sale for `actor` and apply it to stock.

        Steps:
          1. Validate the cart (non-empty, positive quantities).
          2. Read-only stock check for every line; nothing is reserved.
          3. Compute total_amount.
          4. Insert the Sale header.
          5. Per line, in cart order: insert SaleItem, re-read the
             variant, write the decremented stock, report a threshold
             crossing.

        Duplicate lines for the same variant are not merged.
        Recording the same cart twice creates two sales.
        """
        self._validate_lines(lines)
        self._check_stock(session, lines)
        total_amount = compute_total(lines)

        if self.atomic:
            sale, items, events = self._apply_atomic(session, actor, lines, total_amount)
        else:
            sale, items, events = self._apply_stepwise(session, actor, lines, total_amount, on_low_stock)

        logger.info(
            "Sale %s recorded by %s: %d line(s), total %s",
            sale.id, actor.id, len(items), sale.total_amount,
        )

        if self.atomic:
            for event in events:
                self._dispatch_low_stock(on_low_stock, event)

        return self._build_sale_dto(sale, items)

    def _validate_lines(self, lines: list[CartLine]) -> None:
        if not lines:
            raise SaleValidationError("Cart is empty")

        for idx, line in enumerate(lines, start=1):
            if line.quantity <= 0:
                raise SaleValidationError(
                    f"Line {idx}: quantity must be a positive integer",
                    line=idx,
                )
            if line.price_at_sale < 0:
                raise SaleValidationError(
                    f"Line {idx}: price_at_sale must be >= 0",
                    line=idx,
                )

    def _check_stock(self, session: Session, lines: list[CartLine]) -> None:
        """
        Pre-validation pass: read-only, one fresh read per line.
        """
        for line in lines:
            with self._storage_step(session, "read variant stock"):
                found = self.product_repo.get_variant_with_product(session, line.variant_id)

            if found is None:
                raise NotFoundError(
                    "Product variant not found",
                    variant_id=str(line.variant_id),
                )

            variant, product = found
            if variant.stock_quantity < line.quantity:
                raise InsufficientStockError(
                    variant_id=variant.id,
                    product_name=product.name,
                    variant_name=variant.variant_name,
                    available=variant.stock_quantity,
                    requested=line.quantity,
                )

    def _apply_stepwise(
        self,
        session: Session,
        actor: Profile,
        lines: list[CartLine],
        total_amount: Decimal,
        on_low_stock: LowStockCallback | None,
    ) -> tuple[Sale, list[SaleItemRead], list[LowStockEvent]]:
        with self._storage_step(session, "create sale"):
            sale = self.sale_repo.create_sale(
                session, Sale(user_id=actor.id, total_amount=total_amount)
            )
            session.commit()
            session.refresh(sale)

        items: list[SaleItemRead] = []
        events: list[LowStockEvent] = []

        for line in lines:
            with self._storage_step(session, "record sale item"):
                item = self.sale_repo.create_item(
                    session,
                    SaleItem(
                        sale_id=sale.id,
                        variant_id=line.variant_id,
                        quantity_sold=line.quantity,
                        price_at_sale=line.price_at_sale,
                    ),
                )
                session.commit()
                session.refresh(item)

            with self._storage_step(session, "update stock"):
                variant, product = self._reread_variant(session, line.variant_id)
                previous_stock = variant.stock_quantity
                new_stock = previous_stock - line.quantity
                event = self._threshold_event(variant, product, previous_stock, new_stock)
                item_dto = self._build_item_dto(item, variant, product)

                # Written as computed, even below zero.
                self.product_repo.set_stock_quantity(session, variant, new_stock)
                session.commit()

            items.append(item_dto)
            if event is not None:
                events.append(event)
                self._dispatch_low_stock(on_low_stock, event)

        return sale, items, events

    def _apply_atomic(
        self,
        session: Session,
        actor: Profile,
        lines: list[CartLine],
        total_amount: Decimal,
    ) -> tuple[Sale, list[SaleItemRead], list[LowStockEvent]]:
        items: list[SaleItemRead] = []
        events: list[LowStockEvent] = []

        with self._storage_step(session, "record sale"):
            sale = self.sale_repo.create_sale(
                session, Sale(user_id=actor.id, total_amount=total_amount)
            )

            for line in lines:
                item = self.sale_repo.create_item(
                    session,
                    SaleItem(
                        sale_id=sale.id,
                        variant_id=line.variant_id,
                        quantity_sold=line.quantity,
                        price_at_sale=line.price_at_sale,
                    ),
                )

                decremented = self.product_repo.decrement_stock_if_available(
                    session, line.variant_id, line.quantity
                )
                variant, product = self._reread_variant(session, line.variant_id)
                if not decremented:
                    raise InsufficientStockError(
                        variant_id=variant.id,
                        product_name=product.name,
                        variant_name=variant.variant_name,
                        available=variant.stock_quantity,
                        requested=line.quantity,
                    )

                new_stock = variant.stock_quantity
                previous_stock = new_stock + line.quantity
                event = self._threshold_event(variant, product, previous_stock, new_stock)
                if event is not None:
                    events.append(event)
                items.append(self._build_item_dto(item, variant, product))

            session.commit()
            session.refresh(sale)

        return sale, items, events

    def _reread_variant(
        self,
        session: Session,
        variant_id: uuid.UUID,
    ) -> tuple[ProductVariant, Product]:
        found = self.product_repo.get_variant_with_product(session, variant_id)
        if found is None:
            raise NotFoundError(
                "Product variant not found",
                variant_id=str(variant_id),
            )
        return found

    @staticmethod
    def _threshold_event(
        variant: ProductVariant,
        product: Product,
        previous_stock: int,
        new_stock: int,
    ) -> LowStockEvent | None:
        if not crosses_threshold(previous_stock, new_stock, variant.low_stock_threshold):
            return None
        return LowStockEvent(
            variant_id=variant.id,
            sku=variant.sku,
            variant_name=variant.variant_name,
            product_name=product.name,
            previous_stock=previous_stock,
            remaining_stock=new_stock,
            low_stock_threshold=variant.low_stock_threshold,
        )

    @staticmethod
    def _dispatch_low_stock(
        on_low_stock: LowStockCallback | None,
        event: LowStockEvent,
    ) -> None:
        logger.info(
            "Low stock: %s - %s (%s) down to %d (threshold %d)",
            event.product_name, event.variant_name, event.sku,
            event.remaining_stock, event.low_stock_threshold,
        )
        if on_low_stock is None:
            return
        try:
            on_low_stock(event)
        except Exception:
            # Alerts are best-effort; a completed sale stays completed.
            logger.exception("Failed to dispatch low stock alert for %s", event.sku)

    @contextmanager
    def _storage_step(self, session: Session, action: str) -> Iterator[None]:
        """
        Map data store failures to PersistenceError.

        Only the uncommitted work of the current step is rolled back.
        """
        try:
            yield
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Sale recording failed to %s: %s", action, exc)
            raise PersistenceError(f"Failed to {action}") from exc
        except AppError:
            session.rollback()
            raise

    # -------- History --------

    def list_sales(
        self,
        session: Session,
        actor: Profile,
        limit: int | None = None,
    ) -> list[SaleWithItemsRead]:
        """
        Sales newest first. Staff only see the sales they recorded.
        """
        sales = self.sale_repo.list_sales(session, user_id=self._scope(actor), limit=limit)
        rows = self.sale_repo.list_items_with_details(session, [s.id for s in sales])

        items_by_sale: dict[uuid.UUID, list[SaleItemRead]] = {s.id: [] for s in sales}
        for item, variant, product in rows:
            items_by_sale[item.sale_id].append(self._build_item_dto(item, variant, product))

        return [self._build_sale_dto(s, items_by_sale[s.id]) for s in sales]

    def get_sale(
        self,
        session: Session,
        actor: Profile,
        sale_id: uuid.UUID,
    ) -> SaleWithItemsRead:
        """
        404 if the sale does not exist or, for staff, is not theirs.
        """
        sale = self.sale_repo.get_by_id(session, sale_id)
        scope = self._scope(actor)
        if not sale or (scope is not None and sale.user_id != scope):
            raise NotFoundError("Sale not found")

        rows = self.sale_repo.list_items_with_details(session, [sale.id])
        items = [self._build_item_dto(item, variant, product) for item, variant, product in rows]
        return self._build_sale_dto(sale, items)

    def summary(self, session: Session, actor: Profile) -> SalesSummary:
        total_revenue, total_sales = self.sale_repo.summary(session, user_id=self._scope(actor))
        return SalesSummary(total_revenue=total_revenue, total_sales=total_sales)

    @staticmethod
    def _scope(actor: Profile) -> uuid.UUID | None:
        return None if actor.role == "admin" else actor.id

    # -------- Helper DTO builders --------

    @staticmethod
    def _build_item_dto(
        item: SaleItem,
        variant: ProductVariant | None,
        product: Product | None,
    ) -> SaleItemRead:
        price = Decimal(item.price_at_sale)
        return SaleItemRead(
            id=item.id,
            sale_id=item.sale_id,
            variant_id=item.variant_id,
            quantity_sold=item.quantity_sold,
            price_at_sale=price,
            subtotal=(price * item.quantity_sold).quantize(CENTS, rounding=ROUND_HALF_UP),
            created_at=item.created_at,
            sku=variant.sku if variant else None,
            variant_name=variant.variant_name if variant else None,
            product_name=product.name if product else None,
        )

    @staticmethod
    def _build_sale_dto(sale: Sale, items: list[SaleItemRead]) -> SaleWithItemsRead:
        return SaleWithItemsRead(
            id=sale.id,
            user_id=sale.user_id,
            total_amount=sale.total_amount,
            created_at=sale.created_at,
            items=items,
        )
