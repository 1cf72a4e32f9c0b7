from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.crud import get_product
from db.models import CartItem, Product
from utils.pure import format_money, generate_markdown_table


class ProdDetailModal(ModalScreen[bool]):
    """
    product detail, plus adding to the cart
    Will return true if cart changed, false if not
    """

    order_qty = reactive(1)

    def __init__(self, product_id: int) -> None:
        super().__init__()

        self._product_id = product_id

        self._prod: Product | None = None
        self._existing_cart_item: CartItem | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        self._prod = await get_product(self._product_id)
        viewer = self.query_one(MarkdownViewer)
        if self._prod is None:
            await viewer.document.update("### Product not found")
            self.query_one("#btn-addcart", Button).disabled = True
            return

        rows = [
            ["Price", format_money(self._prod.price)],
            ["In stock", self._prod.stock],
            ["Description", self._prod.description or "-"],
            ["Image", self._prod.image or "-"],
        ]
        md_table_str = generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        await viewer.document.update(f"### {self._prod.title}\n\n{md_table_str}")

        # stock is advisory here, checkout re-validates it
        if self._prod.stock < 1:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(self._prod.stock, 1))
        ]

        self._existing_cart_item = self.app.state.cart.get(self._product_id)
        if self._existing_cart_item:
            self.order_qty = self._existing_cart_item.quantity
            self.query_one("#btn-addcart", Button).label = "Update Cart"

        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and message.value
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def validate_order_qty(self, qty: int) -> int:
        return max(qty, 1)

    async def watch_order_qty(self, qty: int):
        btn_sub_qty = self.query_one("#btn-sub-qty", Button)
        btn_add_qty = self.query_one("#btn-add-qty", Button)
        btn_sub_qty.disabled = qty <= 1
        btn_add_qty.disabled = self._prod is not None and qty >= self._prod.stock
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        cart = self.app.state.cart
        if not self._existing_cart_item:
            cart.add(self._prod, self.order_qty)
            self.app.notify("Item added to cart successfully.")
        else:
            cart.set_quantity(self._product_id, self.order_qty)
            self.app.notify("Updated cart item quantity.")
        self.dismiss(True)
