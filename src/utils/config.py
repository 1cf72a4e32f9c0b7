# environment-driven settings shared by the store, the api and the tui
import os
from dataclasses import dataclass


def _env_flag(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return val.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read from the environment.

    Fields:
      - db_path: sqlite file holding products, orders and order items
      - cart_path: json file backing the client cart of the terminal ui
      - seed: insert the sample catalog into an empty database
      - db_timeout: seconds a checkout waits for the sqlite write lock
      - currency_symbol: prefix for human readable totals
      - host / port: bind address of the http server
      - debug: verbose logging
    """

    db_path: str = "data/store.sqlite"
    cart_path: str = "data/cart.json"
    seed: bool = True
    db_timeout: float = 5.0
    currency_symbol: str = "₹"
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=os.getenv("STORE_DB_PATH", cls.db_path),
            cart_path=os.getenv("STORE_CART_PATH", cls.cart_path),
            seed=_env_flag("STORE_SEED", cls.seed),
            db_timeout=float(os.getenv("STORE_DB_TIMEOUT", cls.db_timeout)),
            currency_symbol=os.getenv("STORE_CURRENCY_SYMBOL", cls.currency_symbol),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            debug=_env_flag("DEBUG", cls.debug),
        )


settings = Settings.from_env()
