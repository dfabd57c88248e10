from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Markdown

from shop.errors import AuthError, StoreWriteError, ValidationError
from utils.logger import get_logger
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import DialogModal

_logger = get_logger(__name__)


class CheckoutModal(ModalScreen[Optional[str]]):
    """
    Cash-on-delivery checkout: order summary plus customer details.
    Dismisses with the new order id, or None when cancelled or failed.
    """

    BINDINGS = [("escape", "go_back", "Back")]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Markdown("", id="md-summary")
            yield Label("Full Name")
            yield Input(placeholder="Husna Ahmadi", id="input-name")
            yield Label("Phone")
            yield Input(placeholder="07xx xxx xxx", id="input-phone", type="text")
            yield Label("Delivery Address")
            yield Input(placeholder="Street, district, city", id="input-address")
            yield Label("Payment: cash on delivery", id="label-payment")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.state.cart
        currency = self.app.state.ctx.config.currency
        rows = [
            [
                line.name,
                format_money(line.price, currency),
                line.qty,
                format_money(line.subtotal, currency),
            ]
            for line in cart.lines
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            ["Product", "Unit Price", "Qty", "Subtotal"], rows, ["l", "r", "c", "r"]
        )
        md += f"\n\n**Total:** {format_money(cart.compute_total(), currency)}"
        await self.query_one("#md-summary", Markdown).update(md)
        self.query_one("#input-name").focus()

    def action_go_back(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)

    def _mark_invalid(self, field: Optional[str]) -> None:
        for inp in self.query(Input):
            inp.remove_class("-invalid")
        if field:
            matches = self.query(f"#input-{field}")
            if matches:
                matches.first().add_class("-invalid")
                matches.first().focus()

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        info = {
            "name": self.query_one("#input-name", Input).value,
            "phone": self.query_one("#input-phone", Input).value,
            "address": self.query_one("#input-address", Input).value,
        }
        for key, val in info.items():
            if not val.strip():
                self._mark_invalid(key)
                self.notify(f"{key.capitalize()} is required.", severity="error")
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

        try:
            order_id = await self.app.state.order_manager.place_order(
                info, self.app.state.cart
            )
        except ValidationError as exc:
            self._mark_invalid(exc.field)
            self.notify(str(exc), severity="error")
            return
        except (AuthError, StoreWriteError) as exc:
            _logger.error(f"Checkout failed: {exc}")
            self.notify(
                "Could not place the order, please try again.", severity="error"
            )
            return

        self.dismiss(order_id)
