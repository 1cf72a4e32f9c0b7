from textual import on, work
from textual.app import ComposeResult
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

import db.crud
from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class CatalogScreen(BaseScreen):
    """
    Product listing, newest first. Enter opens the product detail.
    """

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-catalog")
        yield Label("", id="label-catalog-count")
        yield Button("Refresh", id="btn-refresh")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Title", "Price", "Stock", "Description")
        table.focus()

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self):
        self.load_products()

    @work(exclusive=True)
    async def load_products(self) -> None:
        products = await db.crud.list_products()
        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            stock = str(p.stock) if p.stock > 0 else "Out of stock"
            table.add_row(
                p.id, p.title, format_money(p.price), stock, p.description or ""
            )
        self.query_one("#label-catalog-count", Label).content = (
            f"{len(products)} products"
        )

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        self.open_detail(int(event.data_table.get_row_at(event.cursor_row)[0]))

    @work()
    async def open_detail(self, product_id: int) -> None:
        if await self.app.push_screen_wait(ProdDetailModal(product_id)):
            self.post_message(CartChangedMessage())
