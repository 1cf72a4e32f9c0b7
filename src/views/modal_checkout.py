import asyncio

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.crud import checkout, get_product
from db.errors import StoreError
from db.models import Customer
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import DialogModal

_FIELDS = ("name", "email", "address")


class CheckoutModal(ModalScreen[int | None]):
    """
    Order summary plus customer details.
    Dismisses with the new order id on success, None otherwise.
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Name")
            yield Input(placeholder="Jane Doe", id="input-name")
            yield Label("Email")
            yield Input(placeholder="jane@example.com", id="input-email")
            yield Label("Shipping Address")
            yield Input(placeholder="221B Baker Street, Mumbai", id="input-address")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart_items = self.app.state.cart.items()
        prods = await asyncio.gather(
            *(get_product(item.product_id) for item in cart_items)
        )
        rows = []
        total = 0
        for item, prod in zip(cart_items, prods):
            price = prod.price if prod else item.price
            total += price * item.quantity
            rows.append(
                [
                    item.title,
                    format_money(price),
                    item.quantity,
                    format_money(price * item.quantity),
                ]
            )
        headers = ["Product", "Unit Price", "Quantity", "Line Total"]
        md = generate_markdown_table(headers, rows, ["l", "r", "c", "r"])
        md += f"\n\n**Estimated total:** {format_money(total)}"
        md += "\n\n_Prices and stock are confirmed when the order is placed._"
        await self.query_one(MarkdownViewer).document.update(
            "### Order Summary\n\n" + md
        )
        self.query_one("#input-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        values = {f: self.query_one(f"#input-{f}", Input).value.strip() for f in _FIELDS}
        missing = [f for f in _FIELDS if not values[f]]
        for f in _FIELDS:
            self.query_one(f"#input-{f}", Input).set_class(f in missing, "-invalid")
        if missing:
            self.query_one(f"#input-{missing[0]}", Input).focus()
            self.notify(
                f"Missing customer information: {', '.join(missing)}", severity="error"
            )
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        cart = self.app.state.cart
        try:
            result = await checkout(cart.to_order_items(), Customer(**values))
        except StoreError as exc:
            # cart is kept so the shopper can fix quantities and retry
            await self.app.push_screen_wait(
                DialogModal(str(exc), primary_text="OK", tone="error")
            )
            return

        cart.clear()
        self.notify(
            f"Order #{result.order_id} placed. Total {format_money(result.total_amount)}."
        )
        self.dismiss(result.order_id)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
