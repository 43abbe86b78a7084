# app/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Catalog entry (a piece of jewelry).

    Purchasable configurations live in ProductVariant.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description",
    )

    # necklace | bracelet | earrings | watch | ring
    category: str = Field(
        max_length=50,
        index=True,
        description="Product category",
    )

    image_url: str | None = Field(
        default=None,
        description="Public image URL",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )


class ProductVariant(SQLModel, table=True):
    """
    A specific purchasable configuration (SKU) of a Product.

    stock_quantity is the one mutable shared value of the sales flow:
    it is read, then written, without locking (see SaleService).
    """

    __tablename__ = "product_variants"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
        description="FK to products.id",
    )

    sku: str = Field(
        max_length=100,
        unique=True,
        index=True,
        description="Stock keeping unit (unique)",
    )

    variant_name: str = Field(
        max_length=255,
        description="e.g. 'Gold 18k - size 52'",
    )

    price: Decimal = Field(
        default=Decimal("0"),
        max_digits=12,
        decimal_places=2,
        description="Current catalog unit price",
    )

    stock_quantity: int = Field(
        default=0,
        description="Units currently in stock",
    )

    low_stock_threshold: int = Field(
        default=5,
        description="Alert when stock falls to or below this level",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )
