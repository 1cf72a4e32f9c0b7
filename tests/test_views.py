import os
import tempfile
import unittest

from textual.widgets import DataTable, Label

from db import crud
from db import database as db_database
from db.models import Product
from main import StorefrontApp
from utils.cart import Cart, MemoryStorage
from utils.state import GlobalState
from views.scr_cart import CartItemWidget, CartScreen
from views.scr_catalog import CatalogScreen


async def _wait_until(pilot, predicate, tries: int = 100):
    for _ in range(tries):
        await pilot.pause(0.02)
        if predicate():
            return True
    return False


class ViewsTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self._orig_path = db_database.DB_PATH
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "tui.sqlite")
        db_database._initialized = False
        self.state = GlobalState(cart=Cart(MemoryStorage()))

    def tearDown(self):
        db_database.DB_PATH = self._orig_path
        db_database._initialized = False
        self.temp_dir.cleanup()

    async def test_catalog_lists_products(self):
        app = StorefrontApp(self.state)
        async with app.run_test(size=(120, 40)) as pilot:
            self.assertTrue(
                await _wait_until(pilot, lambda: isinstance(app.screen, CatalogScreen))
            )

            def loaded():
                return app.screen.query_one("#table-catalog", DataTable).row_count == 4

            self.assertTrue(await _wait_until(pilot, loaded))

    async def test_cart_screen_uses_live_prices(self):
        tee = await crud.get_product(1)
        # cached price is stale, the screen must show the catalog price
        self.state.cart.add(
            Product(tee.id, tee.title, None, 100, None, tee.stock), 2
        )
        app = StorefrontApp(self.state)
        async with app.run_test(size=(120, 40)) as pilot:
            await _wait_until(pilot, lambda: isinstance(app.screen, CatalogScreen))
            await app.switch_mode("cart")

            def rendered():
                screen = app.screen
                return (
                    isinstance(screen, CartScreen)
                    and len(screen.query(CartItemWidget)) == 1
                    and "1198.00" in str(screen.query_one("#label-cart-total", Label).content)
                )

            self.assertTrue(await _wait_until(pilot, rendered))
