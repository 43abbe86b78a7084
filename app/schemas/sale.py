# app/schemas/sale.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class CartLine(SQLModel):
    """
    One line of the cart submitted at checkout.

    Not persisted. price_at_sale is the price the seller charged, which
    may differ from the current catalog price.
    """

    model_config = ConfigDict(extra="forbid")

    variant_id: uuid.UUID
    quantity: int = Field(gt=0)
    price_at_sale: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class SaleCreate(SQLModel):
    """
    Payload for recording a sale.

    The acting user comes from the token, never from the payload.
    An empty `items` list is rejected by the service with a
    `validation` error.
    """

    model_config = ConfigDict(extra="forbid")

    items: list[CartLine]


class SaleItemRead(SQLModel):
    id: uuid.UUID
    sale_id: uuid.UUID
    variant_id: uuid.UUID
    quantity_sold: int
    price_at_sale: Decimal
    subtotal: Decimal
    created_at: datetime

    # Denormalized for display; None if the variant row is gone
    sku: str | None = None
    variant_name: str | None = None
    product_name: str | None = None


class SaleRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    total_amount: Decimal
    created_at: datetime


class SaleWithItemsRead(SaleRead):
    items: list[SaleItemRead]


class SalesSummary(SQLModel):
    """
    Totals shown above the sales history.
    Scoped to the caller's own sales for staff.
    """

    total_revenue: Decimal
    total_sales: int


class LowStockEvent(SQLModel):
    """
    A variant's stock crossed from above its threshold to at-or-below it
    during one decrement.
    """

    variant_id: uuid.UUID
    sku: str
    variant_name: str
    product_name: str
    previous_stock: int
    remaining_stock: int
    low_stock_threshold: int
