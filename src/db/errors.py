"""Errors raised by the store, each carries a message safe to show to a shopper."""

from typing import Optional

from db.models import Product


class StoreError(Exception):
    """Base exception for all storefront errors."""

    pass


class InvalidInput(StoreError):
    """Raised when a checkout request is empty or incomplete."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class ProductNotFound(StoreError):
    """Raised when a cart entry references a product that doesn't exist."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStock(StoreError):
    """Raised when more units are requested than the product has in stock."""

    def __init__(self, product: Product, requested: int, available: int):
        self.product = product
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product.title}: "
            f"requested {requested}, only {available} available"
        )

    @property
    def shortfall(self) -> int:
        return self.requested - self.available


class StorageFailure(StoreError):
    """Raised when the database could not complete an operation.

    The underlying driver error is chained as __cause__ and logged, never shown.
    """

    def __init__(self, message: str = "Order could not be placed, please try again."):
        super().__init__(message)
