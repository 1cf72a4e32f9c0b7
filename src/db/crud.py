# src/db/crud.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import aiosqlite

from db import models
from db.database import connect, transaction
from db.errors import (
    InsufficientStock,
    InvalidInput,
    ProductNotFound,
    StorageFailure,
    StoreError,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

_PRODUCT_COLUMNS = "id, title, description, price, image, stock, created_at"
_ORDER_COLUMNS = (
    "id, customer_name, customer_email, customer_address, total_amount, created_at"
)
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# sqlite INTEGER is a signed 64-bit value
_SQLITE_INT_MIN = -(2**63)
_SQLITE_INT_MAX = 2**63 - 1


def _storable_id(val) -> bool:
    """False for ids the driver can't bind, no row can have them."""
    return (
        isinstance(val, int)
        and not isinstance(val, bool)
        and _SQLITE_INT_MIN <= val <= _SQLITE_INT_MAX
    )


def _to_timestamp(when: datetime) -> str:
    """Render as UTC in the same layout sqlite's CURRENT_TIMESTAMP uses."""
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc).replace(tzinfo=None)
    return when.strftime(_TIMESTAMP_FORMAT)


def _parse_timestamp(val) -> Optional[datetime]:
    if val is None:
        return None
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(str(val))


def _row_to_product(row) -> models.Product:
    return models.Product(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        price=row["price"],
        image=row["image"],
        stock=row["stock"],
        created_at=_parse_timestamp(row["created_at"]),
    )


def _row_to_line_item(row) -> models.LineItem:
    return models.LineItem(
        id=row["id"],
        order_id=row["order_id"],
        product_id=row["product_id"],
        quantity=row["quantity"],
        price_each=row["price_each"],
    )


def _row_to_order(row, items: Iterable[models.LineItem] = ()) -> models.Order:
    return models.Order(
        id=row["id"],
        customer_name=row["customer_name"],
        customer_email=row["customer_email"],
        customer_address=row["customer_address"],
        total_amount=row["total_amount"],
        created_at=_parse_timestamp(row["created_at"]),
        items=tuple(items),
    )


# ---------------------------
# Catalog
# ---------------------------


async def list_products() -> List[models.Product]:
    """All products, most recently created first."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products ORDER BY created_at DESC, id DESC;"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def _fetch_product(
    conn: aiosqlite.Connection, product_id: int
) -> Optional[models.Product]:
    if not _storable_id(product_id):
        return None
    cur = await conn.execute(
        f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?;", (product_id,)
    )
    row = await cur.fetchone()
    await cur.close()
    return _row_to_product(row) if row else None


async def get_product(product_id: int) -> Optional[models.Product]:
    """Fetch a product by id, None if it doesn't exist."""
    async with connect() as conn:
        return await _fetch_product(conn, product_id)


async def product_stock(product_id: int) -> Optional[int]:
    if not _storable_id(product_id):
        return None
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT stock FROM products WHERE id = ?;", (product_id,)
        )
        row = await cur.fetchone()
        await cur.close()
        return int(row[0]) if row else None


async def add_product(
    title: str,
    price: int,
    stock: int,
    description: Optional[str] = None,
    image: Optional[str] = None,
) -> models.Product:
    """Insert a product and return it. Used for seeding and tooling."""
    if price < 0 or stock < 0:
        raise ValueError("Price and stock cannot be negative.")
    async with connect() as conn:
        cur = await conn.execute(
            "INSERT INTO products (title, description, price, image, stock) VALUES (?, ?, ?, ?, ?);",
            (title, description, price, image, stock),
        )
        product_id = cur.lastrowid
        await cur.close()
        await conn.commit()
        return await _fetch_product(conn, product_id)


async def decrement_stock(
    conn: aiosqlite.Connection, product_id: int, qty: int
) -> bool:
    """
    Take qty units off the product's stock in a single conditional write.
    Runs on the caller's connection so it joins the caller's transaction.
    Returns False, changing nothing, when stock is short or the product is gone.
    """
    if not _storable_id(product_id):
        return False
    cur = await conn.execute(
        "UPDATE products SET stock = stock - ? WHERE id = ? AND stock >= ?;",
        (qty, product_id, qty),
    )
    changed = cur.rowcount
    await cur.close()
    return changed == 1


# ---------------------------
# Order Ledger
# ---------------------------


async def create_order(
    conn: aiosqlite.Connection,
    customer: models.Customer,
    total_amount: int,
    lines: Sequence[Tuple[int, int, int]],
    created_at: datetime,
) -> int:
    """
    Insert an order and its (product_id, quantity, price_each) lines on the
    caller's connection. Does not commit; the caller owns the transaction.
    Returns the new order id.
    """
    cur = await conn.execute(
        """
        INSERT INTO orders (customer_name, customer_email, customer_address, total_amount, created_at)
        VALUES (?, ?, ?, ?, ?);
        """,
        (
            customer.name,
            customer.email,
            customer.address,
            total_amount,
            _to_timestamp(created_at),
        ),
    )
    order_id = cur.lastrowid
    await cur.close()
    await conn.executemany(
        "INSERT INTO order_items (order_id, product_id, quantity, price_each) VALUES (?, ?, ?, ?);",
        [(order_id, pid, qty, price) for pid, qty, price in lines],
    )
    return order_id


async def list_orders() -> List[models.Order]:
    """All orders, most recent first, each with its line items attached."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders ORDER BY created_at DESC, id DESC;"
        )
        order_rows = await cur.fetchall()
        await cur.close()
        cur = await conn.execute(
            "SELECT id, order_id, product_id, quantity, price_each FROM order_items ORDER BY id;"
        )
        item_rows = await cur.fetchall()
        await cur.close()

    items_by_order: Dict[int, List[models.LineItem]] = {}
    for row in item_rows:
        items_by_order.setdefault(row["order_id"], []).append(_row_to_line_item(row))
    return [_row_to_order(row, items_by_order.get(row["id"], [])) for row in order_rows]


async def get_order(order_id: int) -> Optional[models.Order]:
    """Return a single order with its line items, None if missing."""
    if not _storable_id(order_id):
        return None
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = ?;", (order_id,)
        )
        order_row = await cur.fetchone()
        await cur.close()
        if not order_row:
            return None
        cur = await conn.execute(
            "SELECT id, order_id, product_id, quantity, price_each FROM order_items WHERE order_id = ? ORDER BY id;",
            (order_id,),
        )
        item_rows = await cur.fetchall()
        await cur.close()
    return _row_to_order(order_row, (_row_to_line_item(row) for row in item_rows))


# ---------------------------
# Checkout
# ---------------------------


def _validate_checkout_input(
    items: Sequence[models.OrderRequestItem], customer: Optional[models.Customer]
) -> models.Customer:
    if not items:
        raise InvalidInput("Cart is empty", field="items")

    fields: Dict[str, str] = {}
    missing = []
    for name in ("name", "email", "address"):
        value = getattr(customer, name, None)
        if isinstance(value, str) and value.strip():
            fields[name] = value.strip()
        else:
            missing.append(name)
    if missing:
        raise InvalidInput(
            f"Missing customer information: {', '.join(missing)}", field="customer"
        )

    for item in items:
        qty = item.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            raise InvalidInput(
                f"Quantity for product {item.product_id} must be a positive whole number",
                field="quantity",
            )

    return models.Customer(**fields)


async def checkout(
    items: Sequence[models.OrderRequestItem],
    customer: Optional[models.Customer],
    created_at: Optional[datetime] = None,
) -> models.CheckoutResult:
    """
    Turn a cart into an order, all or nothing.

    Every entry is checked against live stock, the total is computed from the
    current catalog prices (never the cart's cached ones), then the order,
    one line item per entry and the stock decrements are written in a single
    transaction. Raises InvalidInput, ProductNotFound, InsufficientStock or
    StorageFailure; on any of them nothing is written.
    """
    customer = _validate_checkout_input(items, customer)
    created_at = created_at or datetime.now(timezone.utc)

    try:
        async with transaction() as conn:
            prices: Dict[int, int] = {}
            requested: Dict[int, int] = {}
            for item in items:
                product = await _fetch_product(conn, item.product_id)
                if product is None:
                    raise ProductNotFound(item.product_id)
                # repeated entries for one product draw on the same stock
                requested[product.id] = requested.get(product.id, 0) + item.quantity
                if product.stock < requested[product.id]:
                    raise InsufficientStock(
                        product, requested[product.id], product.stock
                    )
                prices[product.id] = product.price

            total = sum(prices[item.product_id] * item.quantity for item in items)
            lines = [
                (item.product_id, item.quantity, prices[item.product_id])
                for item in items
            ]
            order_id = await create_order(conn, customer, total, lines, created_at)

            for item in items:
                if not await decrement_stock(conn, item.product_id, item.quantity):
                    product = await _fetch_product(conn, item.product_id)
                    if product is None:
                        raise ProductNotFound(item.product_id)
                    raise InsufficientStock(product, item.quantity, product.stock)
    except StoreError as exc:
        _logger.info(f"Checkout rejected: {exc}")
        raise
    except aiosqlite.Error as exc:
        _logger.exception(f"Checkout failed in storage: {exc}")
        raise StorageFailure() from exc

    _logger.info(
        f"Order {order_id} placed: {len(items)} line(s), total {total} for {customer.email}"
    )
    return models.CheckoutResult(order_id=order_id, total_amount=total)
