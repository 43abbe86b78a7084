# app/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

Category = Literal["necklace", "bracelet", "earrings", "watch", "ring"]


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class ProductCreate(SQLModel):
    """
    Payload for creating a product together with its first variant.

    - sku is optional: if omitted, generated from the category.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    description: str | None = None
    category: Category
    image_url: str | None = None

    variant_name: str = Field(max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=5, ge=0)

    @field_validator("name", "variant_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("description", "image_url", "sku")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    category: Category | None = None
    image_url: str | None = None

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v)


class VariantCreate(SQLModel):
    """
    Payload for adding a variant to an existing product.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    variant_name: str = Field(max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=5, ge=0)

    @field_validator("variant_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class VariantUpdate(SQLModel):
    """
    Partial update payload for variants (stock management edits).
    """

    model_config = ConfigDict(extra="forbid")

    variant_name: str | None = Field(default=None, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock_quantity: int | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)

    @field_validator("variant_name", "sku")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v)


class VariantRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    sku: str
    variant_name: str
    price: Decimal
    stock_quantity: int
    low_stock_threshold: int
    created_at: datetime
    updated_at: datetime


class VariantWithProductRead(VariantRead):
    """
    Variant plus the product fields the sale cart picker shows.
    """

    product_name: str
    category: Category
    image_url: str | None = None


class ProductRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str | None
    category: Category
    image_url: str | None
    created_at: datetime
    updated_at: datetime


class ProductWithVariantsRead(ProductRead):
    """
    Stock management view: product with all its variants.
    """

    product_variants: list[VariantRead]


class LowStockItem(SQLModel):
    """
    Variant at or below its low stock threshold.
    """

    id: uuid.UUID
    sku: str
    variant_name: str
    product_name: str
    category: Category
    stock_quantity: int
    low_stock_threshold: int
    price: Decimal
