from __future__ import annotations

from dataclasses import dataclass, field

from utils.cart import Cart, FileStorage, MemoryStorage
from utils.config import settings


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - cart: the shopper's cart repository, passed in so tests can use memory storage
    """

    cart: Cart = field(default_factory=lambda: Cart(MemoryStorage()))

    @classmethod
    def from_settings(cls) -> "GlobalState":
        """State whose cart survives restarts in the configured json file."""
        return cls(cart=Cart(FileStorage(settings.cart_path)))
