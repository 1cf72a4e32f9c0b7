from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import QuitDialogModal
from views.modal_resize import ResizeScreenPromptModal


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("Your Cart", id="label-info-1")
        yield Markdown("", id="md-cartinfo")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        menu = {**self.app.SHOP_MODES, **self.app.ADMIN_MODES}
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in menu.items()]
        )
        self.highlight_item(self.init_mode)
        await self.update_cart_badge()

    async def update_cart_badge(self):
        cart = self.app.state.cart
        rows = [
            ["Items", cart.count()],
            ["Subtotal", format_money(cart.subtotal())],
        ]
        md_table_str = generate_markdown_table(None, rows, ["l", "l"])
        for md in self.query("#md-cartinfo").results(Markdown):
            await md.update(md_table_str)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Storefront",
        show_sidebar: bool = True,
    ) -> None:
        """
        set header titles from the app's mode tables
        """
        self.app.title = "TrendHive Storefront"
        self.sub_title = header_sub_title
        modes = {**self.app.SHOP_MODES, **self.app.ADMIN_MODES}
        for k, v in self.app.MODES.items():
            if isinstance(self, v) and k in modes:
                self.sub_title = modes[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        min_width = 60
        min_height = 20
        if event.size.width < min_width or event.size.height < min_height:
            self.app.push_screen(ResizeScreenPromptModal(min_width, min_height))

    # sidebar is a sibling of the widgets posting these, so relay from the screen
    @on(CartChangedMessage)
    @on(NewOrderMessage)
    @on(ScreenResume)
    async def refresh_sidebar(self) -> None:
        for sidebar in self.query(Sidebar):
            await sidebar.update_cart_badge()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
