# app/models/sale.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Sale(SQLModel, table=True):
    """
    Header of a recorded (point of sale) transaction.

    Append-only: created once per checkout, never mutated afterwards.
    """

    __tablename__ = "sales"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="profiles.id",
        index=True,
        description="Profile that recorded the sale",
    )

    total_amount: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="Sum of price_at_sale * quantity_sold over the items",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class SaleItem(SQLModel, table=True):
    """
    Line item of a sale.

    price_at_sale is a snapshot: later catalog price changes do not
    affect revenue reporting.
    """

    __tablename__ = "sale_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    sale_id: uuid.UUID = Field(
        foreign_key="sales.id",
        index=True,
    )

    variant_id: uuid.UUID = Field(
        foreign_key="product_variants.id",
        index=True,
    )

    quantity_sold: int = Field(
        gt=0,
        description="Quantity sold (>=1)",
    )

    price_at_sale: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="Unit price at time of sale",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
