import asyncio
from typing import Dict, List, Tuple

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

import db.crud
from db.models import LineItem, Order, Product
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_money
from views.base_screen import BaseScreen


class OrdersScreen(BaseScreen):
    """
    Admin view of every order placed, newest first.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: Dict[int, Order] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Label("", id="label-order-count")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Placed (UTC)", "Customer", "Email", "Items", "Total")

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self):
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        row_values = event.data_table.get_row_at(event.cursor_row)
        if row_values:
            self._load_and_render_detail(int(row_values[0]))

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        orders = await db.crud.list_orders()
        self._orders = {o.id: o for o in orders}

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.id,
                str(o.created_at),
                o.customer_name,
                o.customer_email,
                sum(item.quantity for item in o.items),
                format_money(o.total_amount),
            )
        self.query_one("#label-order-count", Label).content = f"{len(orders)} orders"
        if orders:
            table.cursor_coordinate = (0, 0)
        else:
            self._render_detail(None, [])

    @work(exclusive=True, group="detail")
    async def _load_and_render_detail(self, order_id: int) -> None:
        order = self._orders.get(order_id) or await db.crud.get_order(order_id)
        if not order:
            self._render_detail(None, [])
            return
        prods = await asyncio.gather(
            *(db.crud.get_product(item.product_id) for item in order.items)
        )
        self._render_detail(order, list(zip(order.items, prods)))

    def _render_detail(
        self,
        order: Order | None,
        lines_with_prod: List[Tuple[LineItem, Product | None]],
    ) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### No orders yet.")
            return

        header = (
            f"### Order #{order.id}\n"
            f"Placed: {order.created_at} UTC  \n"
            f"Customer: {order.customer_name} ({order.customer_email})  \n"
            f"Ship To: {order.customer_address}\n\n"
        )
        rows = [
            "| Product | Qty | Unit Price | Line Total |",
            "|---|---:|---:|---:|",
        ]
        for item, prod in lines_with_prod:
            name = prod.title if prod else f"Product {item.product_id}"
            rows.append(
                f"| {name} | {item.quantity} | {format_money(item.price_each)} "
                f"| {format_money(item.line_total)} |"
            )
        footer = f"\n\n**Grand Total:** {format_money(order.total_amount)}"
        viewer.document.update(header + "\n".join(rows) + footer)
