from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Rule

from db.models import CartLine
from utils.messages import CartChangedMessage, CheckoutCompleteMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartScreen(BaseScreen):
    """
    Lines of the session cart with quantity controls and checkout.
    """

    BINDINGS = [
        Binding("plus,equals_sign", "change_qty(1)", "+1", show=True),
        Binding("minus", "change_qty(-1)", "-1", show=True),
        Binding("delete", "remove_line", "Remove", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-cart")
        yield Label("Your cart is empty.", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("-", id="btn-sub-qty")
            yield Button("+", id="btn-add-qty")
            yield Button("Remove", id="btn-remove")
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Unit Price", "Qty", "Subtotal")
        self.render_cart()

    @on(CartChangedMessage)
    @on(ScreenResume)
    def handle_cart_change(self) -> None:
        self.render_cart()

    def render_cart(self) -> None:
        cart = self.app.state.cart
        currency = self.app.state.ctx.config.currency

        table = self.query_one(DataTable)
        cursor = table.cursor_row
        table.clear()
        for line in cart.lines:
            table.add_row(
                line.name,
                format_money(line.price, currency),
                str(line.qty),
                format_money(line.subtotal, currency),
                key=line.product_id,
            )
        if cart.lines and cursor is not None:
            table.move_cursor(row=min(cursor, len(cart.lines) - 1))

        total = self.query_one("#label-cart-total", Label)
        if cart.is_empty:
            total.update("Your cart is empty.")
        else:
            total.update(f"Total: {format_money(cart.compute_total(), currency)}")
        self.query_one("#btn-checkout", Button).disabled = cart.is_empty

    def _selected_line(self) -> Optional[CartLine]:
        lines = self.app.state.cart.lines
        cursor = self.query_one(DataTable).cursor_row
        if not lines or cursor is None or not 0 <= cursor < len(lines):
            return None
        return lines[cursor]

    def action_change_qty(self, delta: int) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.app.state.cart.update_quantity(line.product_id, delta)
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self) -> None:
        self.action_change_qty(-1)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self) -> None:
        self.action_change_qty(1)

    @on(Button.Pressed, "#btn-remove")
    def action_remove_line(self) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.app.state.cart.remove_from_cart(line.product_id)
        self.post_message(CartChangedMessage())
        self.notify(f"{line.name} removed from cart.")

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        cart = self.app.state.cart
        if cart.is_empty:
            self.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            cart.clear()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if self.app.state.cart.is_empty:
            self.notify("Cart is empty.", severity="warning")
            return

        order_id = await self.app.push_screen_wait(CheckoutModal())
        self.post_message(CartChangedMessage())
        if order_id:
            self.post_message(CheckoutCompleteMessage(order_id))
