"""Client side cart, persisted as one json list under a single storage key.

The cart never talks to the database. Titles and prices are cached when an
item is added and only used for display; checkout re-prices everything from
the catalog.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict
from typing import Dict, List, Mapping, Optional, Protocol

from db.models import CartItem, OrderRequestItem, Product
from utils.logger import get_logger

_logger = get_logger(__name__)

CART_KEY = "trendhive_cart"


class CartStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Dict backed storage, for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FileStorage:
    """Key-value storage kept in a single json file on disk."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path) or os.path.getsize(self.path) == 0:
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (ValueError, UnicodeDecodeError) as exc:
            # unreadable file starts over as an empty store, next set() rewrites it
            _logger.warning(f"Ignoring unreadable cart file {self.path}: {exc}")
            return {}
        if not isinstance(data, dict):
            _logger.warning(f"Ignoring cart file {self.path}: not a json object")
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)


class Cart:
    """
    Ordered list of cart items, read and written wholesale on every call.

    Usage:
        cart = Cart(MemoryStorage())
        cart.add(product, 2)
        crud.checkout(cart.to_order_items(), customer)
    """

    def __init__(self, storage: CartStorage, key: str = CART_KEY) -> None:
        self.storage = storage
        self.key = key

    def items(self) -> List[CartItem]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            return [CartItem(**entry) for entry in json.loads(raw)]
        except (ValueError, TypeError) as exc:
            _logger.warning(f"Discarding unreadable cart under {self.key!r}: {exc}")
            return []

    def _save(self, items: List[CartItem]) -> None:
        self.storage.set(self.key, json.dumps([asdict(item) for item in items]))

    def add(self, product: Product, qty: int = 1) -> CartItem:
        """Add qty units of product, merging with an existing entry."""
        if qty < 1:
            raise ValueError("Quantity must be at least 1.")
        items = self.items()
        for item in items:
            if item.product_id == product.id:
                item.quantity += qty
                found = item
                break
        else:
            found = CartItem(
                product_id=product.id,
                title=product.title,
                price=product.price,
                quantity=qty,
            )
            items.append(found)
        self._save(items)
        return found

    def set_quantity(self, product_id: int, qty: int) -> bool:
        """Set the quantity of an entry, clamped to at least 1.

        Returns False if the product isn't in the cart.
        """
        items = self.items()
        for item in items:
            if item.product_id == product_id:
                item.quantity = max(1, int(qty))
                self._save(items)
                return True
        return False

    def remove(self, product_id: int) -> None:
        self._save([item for item in self.items() if item.product_id != product_id])

    def clear(self) -> None:
        self._save([])

    def get(self, product_id: int) -> Optional[CartItem]:
        for item in self.items():
            if item.product_id == product_id:
                return item
        return None

    def count(self) -> int:
        """Total number of units, as shown on the cart badge."""
        return sum(item.quantity for item in self.items())

    def subtotal(self, prices: Optional[Mapping[int, int]] = None) -> int:
        """Sum of price * quantity, preferring live prices when given."""
        prices = prices or {}
        return sum(
            prices.get(item.product_id, item.price) * item.quantity
            for item in self.items()
        )

    def to_order_items(self) -> List[OrderRequestItem]:
        return [
            OrderRequestItem(product_id=item.product_id, quantity=item.quantity)
            for item in self.items()
        ]
