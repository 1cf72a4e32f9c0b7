# provide dataclass models
# money is always an int in minor currency units (paise)

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Product:
    id: int
    title: str
    description: Optional[str]
    price: int
    image: Optional[str]
    stock: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LineItem:
    id: int
    order_id: int
    product_id: int
    quantity: int
    price_each: int  # unit price at time of order

    @property
    def line_total(self) -> int:
        return self.price_each * self.quantity


@dataclass(frozen=True)
class Order:
    id: int
    customer_name: str
    customer_email: str
    customer_address: str
    total_amount: int
    created_at: datetime
    items: Tuple[LineItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Customer:
    name: str
    email: str
    address: str


@dataclass(frozen=True)
class OrderRequestItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class CheckoutResult:
    order_id: int
    total_amount: int


@dataclass
class CartItem:
    """client side cart entry, title and price are cached at add time"""

    product_id: int
    title: str
    price: int
    quantity: int
