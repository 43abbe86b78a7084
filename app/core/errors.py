# app/core/errors.py
"""
Tagged application errors.

Every error a service can return to a client is an HTTPException carrying
a machine-readable `code` next to the human-readable message:

    {"detail": {"code": "insufficient_stock", "message": "...", ...}}

NotificationError is the exception: it never reaches a client.
"""

import uuid
from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for tagged, client-facing errors."""

    code: str = "error"
    http_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **extra: Any):
        self.message = message
        super().__init__(
            status_code=self.http_status,
            detail={"code": self.code, "message": message, **extra},
        )


class SaleValidationError(AppError):
    """Empty cart, non-positive quantity, negative price."""

    code = "validation"
    http_status = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    code = "conflict"
    http_status = status.HTTP_409_CONFLICT


class InsufficientStockError(AppError):
    """Requested quantity exceeds the stock available for a variant."""

    code = "insufficient_stock"
    http_status = status.HTTP_409_CONFLICT

    def __init__(
        self,
        variant_id: uuid.UUID,
        product_name: str,
        variant_name: str,
        available: int,
        requested: int,
    ):
        self.variant_id = variant_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name} - {variant_name}. "
            f"Available: {available}, Requested: {requested}",
            variant_id=str(variant_id),
            available=available,
            requested=requested,
        )


class PersistenceError(AppError):
    """
    A create/update against the data store failed.

    Earlier committed steps are NOT rolled back: the operation may be
    partially applied.
    """

    code = "persistence"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotificationError(Exception):
    """Low stock alert could not be delivered. Logged, never surfaced."""
