import asyncio

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from db.crud import get_product
from db.models import CartItem, Product
from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal
from views.modal_prod_detail import ProdDetailModal


class CartItemActionEditMessage(Message):
    bubble = True


class CartItemActionRemoveMessage(Message):
    bubble = True


class CartItemActionLabel(Label):
    def action_edit(self):
        self.post_message(CartItemActionEditMessage())

    def action_remove(self):
        self.post_message(CartItemActionRemoveMessage())


class CartItemWidget(HorizontalGroup):
    """One cart line, priced with the live catalog price when the product still exists."""

    def __init__(self, item: CartItem, product: Product | None):
        super().__init__()
        self.item = item
        self._prod = product

    def compose(self):
        price = self._prod.price if self._prod else self.item.price
        note = "" if self._prod else "  (no longer available)"
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.title + note, id="label-item-name")
                yield Label(f"x{self.item.quantity}", id="label-item-qty")
                yield Label(
                    format_money(price * self.item.quantity), id="label-item-price"
                )
            with Container(id="div-actions"):
                yield CartItemActionLabel("[@click=edit()]Edit[/]", id="link-item-edit")
                yield CartItemActionLabel(
                    "[@click=remove()]Remove[/]", id="link-item-remove"
                )

    @on(CartItemActionEditMessage)
    @work()
    async def handle_edit_item(self):
        if await self.app.push_screen_wait(ProdDetailModal(self.item.product_id)):
            self.post_message(CartChangedMessage())

    @on(CartItemActionRemoveMessage)
    @work()
    async def handle_remove_item(self):
        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove this item from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        )
        if remove_confirmed:
            self.app.state.cart.remove(self.item.product_id)
            self.post_message(CartChangedMessage())
            self.notify("Item removed from cart.", severity="information")


class CartScreen(BaseScreen):
    """
    cart contents with live prices, plus checkout
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: " + format_money(0), id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(NewOrderMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)  # must be exclusive, else concurrent rebuilds duplicate rows
    async def handle_cart_change(self):
        cart_items = self.app.state.cart.items()
        products = await asyncio.gather(
            *(get_product(item.product_id) for item in cart_items)
        )

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all(
            [CartItemWidget(item, prod) for item, prod in zip(cart_items, products)]
        )
        content.set_class(not cart_items, "no-items")

        live_prices = {p.id: p.price for p in products if p is not None}
        total = self.app.state.cart.subtotal(live_prices)
        self.query_one("#label-cart-total", Label).content = (
            f"Total: {format_money(total)}"
        )

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not self.app.state.cart.items():
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        )
        if remove_confirmed:
            self.app.state.cart.clear()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not self.app.state.cart.items():
            self.app.notify("Cart is empty.", severity="warning")
            return

        order_id = await self.app.push_screen_wait(CheckoutModal())
        if order_id:
            self.post_message(NewOrderMessage(order_id))
        self.post_message(CartChangedMessage())
