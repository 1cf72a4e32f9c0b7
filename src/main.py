from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils.messages import ModeSwitchedMessage, QuitRequestedMessage
from utils.state import GlobalState
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_orders import OrdersScreen


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
    }

    SHOP_MODES = {"catalog": "Catalog", "cart": "Cart"}
    ADMIN_MODES = {"orders": "Orders (Admin)"}

    CSS_PATH = "views/storefront.tcss"

    state: GlobalState

    def __init__(self, state: Optional[GlobalState] = None):
        super().__init__()
        self.state = state or GlobalState.from_settings()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        self.post_message(ModeSwitchedMessage(self.current_mode, "catalog"))
        await self.switch_mode("catalog")


def main() -> None:
    StorefrontApp().run()


if __name__ == "__main__":
    main()
