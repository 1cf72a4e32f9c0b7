"""Typed request and response bodies for the storefront http api.

Money fields are ints in minor units on the wire as well.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProductSchema(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    price: int = Field(..., ge=0, description="Price in minor units (paise)")
    image: Optional[str] = None
    stock: int = Field(..., ge=0)
    created_at: Optional[datetime] = None


class LineItemSchema(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price_each: int


class OrderSchema(BaseModel):
    id: int
    customer_name: str
    customer_email: str
    customer_address: str
    total_amount: int
    created_at: datetime
    items: list[LineItemSchema]


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class CustomerRequest(BaseModel):
    # left optional so a missing field is reported by checkout, by name
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class OrderCreateRequest(BaseModel):
    """Request body for placing an order."""

    items: list[OrderItemRequest] = Field(default_factory=list)
    customer: Optional[CustomerRequest] = None


class OrderCreateResponse(BaseModel):
    ok: bool = True
    order_id: int
    total_amount: int
    total_readable: str


class ErrorResponse(BaseModel):
    error: str
