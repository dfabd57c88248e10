from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import AdminLockChangedMessage, CartChangedMessage
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    """Store info, cart badge and the mode menu."""

    def compose(self) -> ComposeResult:
        yield Label("Store", id="label-info-1")
        yield Markdown("", id="md-storeinfo")
        yield Button("Lock Admin", id="btn-lock-admin", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        await self.refresh_info()

    async def refresh_info(self) -> None:
        state = self.app.state
        config = state.ctx.config
        cart = state.cart

        badge = f"{cart.line_count}" if cart.line_count else "empty"
        rows = [
            ["Cart", badge],
            ["Total", format_money(cart.compute_total(), config.currency)],
        ]
        if config.contact_phone:
            rows.append(["Phone", config.contact_phone])
        if not state.ready:
            rows.append(["Status", "offline"])
        await self.query_one("#md-storeinfo", Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )

        self.query_one("#btn-lock-admin").display = state.gate.is_admin

        menu = self.app.ADMIN_MODES if state.gate.is_admin else self.app.CUSTOMER_MODES
        list_menu = self.query_one("#list-menu", ListView)
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in menu.items()]
        )
        self.highlight_item(self.app.current_mode)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.app.current_mode)
        if self.app.current_mode != selected_mode:
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-lock-admin")
    @work()
    async def handle_lock_admin(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Lock the admin dashboard?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        await self.app.state.lock_admin()
        self.post_message(AdminLockChangedMessage(False))

    def highlight_item(self, mode_str: str):
        for item in self.query_one("#list-menu").children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = self.app.ADMIN_MODES.get(
                    k, self.app.CUSTOMER_MODES.get(k, header_sub_title)
                )
        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(CartChangedMessage)
    @on(ScreenResume)
    async def refresh_sidebar(self) -> None:
        if self._show_sidebar:
            await self.query_one(Sidebar).refresh_info()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
