from typing import Optional, Union

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import LoadingIndicator

from shop.context import ClientContext, UnconfiguredContext, build_context
from shop.images import Downscaler
from utils.logger import get_logger
from utils.messages import (
    AdminLockChangedMessage,
    CatalogUpdatedMessage,
    CheckoutCompleteMessage,
    OrdersUpdatedMessage,
    QuitRequestedMessage,
)
from utils.state import GlobalState
from views.scr_admin_login import AdminLoginScreen
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_config_missing import ConfigMissingScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "admin_login": AdminLoginScreen,
        "admin_products": AdminProductsScreen,
        "admin_orders": AdminOrdersScreen,
    }

    CUSTOMER_MODES = {
        "catalog": "Shop",
        "cart": "Cart",
        "admin_login": "Admin",
    }
    ADMIN_MODES = {
        "admin_products": "Manage Products",
        "admin_orders": "Orders",
        "catalog": "Storefront",
    }

    CSS_PATH = [
        "views/styles/index.tcss",
        "views/styles/catalog.tcss",
        "views/styles/cart.tcss",
        "views/styles/admin.tcss",
    ]

    state: GlobalState

    def __init__(
        self,
        ctx: Union[ClientContext, UnconfiguredContext, None] = None,
        image_downscaler: Optional[Downscaler] = None,
    ):
        super().__init__()
        self.state = GlobalState(ctx if ctx is not None else build_context())
        # external utility, product images are stored as given when None
        self.image_downscaler = image_downscaler
        if self.state.configured:
            self.title = self.state.ctx.config.title

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

    def _forward(self, message: Message) -> None:
        # snapshots arrive between handlers, only the active screen rebuilds now
        self.screen.post_message(message)

    async def _goto(self, mode: str) -> None:
        if self.current_mode != mode:
            await self.switch_mode(mode)

    @work
    async def main_flow(self):
        if not self.state.configured:
            await self.push_screen(ConfigMissingScreen(self.state.ctx.missing))
            return

        self.state.on_change(
            products=lambda _view: self._forward(CatalogUpdatedMessage()),
            orders=lambda _view: self._forward(OrdersUpdatedMessage()),
        )
        if not await self.state.start_session():
            self.notify(
                "Could not connect to the store. The catalog stays empty until restart.",
                severity="error",
                timeout=10,
            )
        await self._goto("catalog")

    @on(CheckoutCompleteMessage)
    async def handle_checkout_complete(self, message: CheckoutCompleteMessage):
        self.notify(
            f"Order placed. Your order number is {message.order_id}. "
            "Payment is cash on delivery."
        )
        await self._goto("catalog")

    @on(AdminLockChangedMessage)
    async def handle_admin_lock(self, message: AdminLockChangedMessage):
        await self._goto("admin_products" if message.is_admin else "catalog")

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        try:
            await self.state.end_session()
        except Exception:
            _logger.exception("Closing the store connection failed")
        finally:
            self.exit()


def run() -> None:
    StorefrontApp().run()


if __name__ == "__main__":
    run()
