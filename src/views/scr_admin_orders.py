from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Markdown, Select

from db.models import ORDER_STATUSES, Order
from shop.errors import AdminAuthError, AuthError, StoreWriteError, ValidationError
from shop.orders import order_summary
from utils.logger import get_logger
from utils.messages import OrdersUpdatedMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import BaseScreen

_logger = get_logger(__name__)


class AdminOrdersScreen(BaseScreen):
    """
    Orders, newest first, with the selected order's items and a status picker.

    Layout:
    - summary line on top
    - orders table
    - detail of the highlighted order and the status controls below
    """

    def __init__(self) -> None:
        super().__init__()
        self._selected: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-orders-summary")
            yield DataTable(id="table-orders")
            yield Markdown("", id="md-order-detail")
            with Horizontal(id="hort-status-controls"):
                yield Select(
                    [(s, s) for s in ORDER_STATUSES],
                    id="select-status",
                    allow_blank=False,
                )
                yield Button("Update Status", id="btn-update-status", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Date", "Customer", "Phone", "Total", "Status")
        self.rebuild()

    @on(OrdersUpdatedMessage)
    @on(ScreenResume)
    def handle_orders_update(self) -> None:
        self.rebuild()

    def rebuild(self) -> None:
        orders = self.app.state.orders
        currency = self.app.state.ctx.config.currency

        summary = order_summary(orders.items)
        if orders.loading:
            text = "Loading orders..."
        else:
            counts = ", ".join(f"{k}: {v}" for k, v in summary["by_status"].items() if v)
            text = (
                f"{summary['orders']} orders, revenue "
                f"{format_money(summary['revenue'], currency)}"
                + (f"  ({counts})" if counts else "")
            )
            if orders.error is not None:
                text += "  [could not refresh]"
        self.query_one("#label-orders-summary", Label).update(text)

        table = self.query_one(DataTable)
        table.clear()
        for o in orders.items:
            date = o.created_at.strftime("%Y-%m-%d %H:%M") if o.created_at else "-"
            table.add_row(
                date,
                o.customer_name,
                o.phone,
                format_money(o.total, currency),
                o.status,
                key=o.id,
            )
        if self._selected and orders.get(self._selected) is not None:
            table.move_cursor(row=table.get_row_index(self._selected))
        self.render_detail(self._current())

    def _current(self) -> Optional[Order]:
        orders = self.app.state.orders.items
        cursor = self.query_one(DataTable).cursor_row
        if not orders or cursor is None or not 0 <= cursor < len(orders):
            return None
        return orders[cursor]

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self.render_detail(self._current())

    def render_detail(self, order: Optional[Order]) -> None:
        md = self.query_one("#md-order-detail", Markdown)
        if order is None:
            md.update("### Select an order to view its details.")
            self.query_one("#btn-update-status", Button).disabled = True
            return
        self._selected = order.id
        currency = self.app.state.ctx.config.currency
        header = (
            f"### Order {order.id}\n"
            f"Customer: {order.customer_name}  \n"
            f"Phone: {order.phone}  \n"
            f"Address: {order.address}\n\n"
        )
        rows = [
            [
                line.name,
                line.qty,
                format_money(line.price, currency),
                format_money(line.subtotal, currency),
            ]
            for line in order.items
        ]
        table = generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "c", "r", "r"]
        )
        footer = f"\n\n**Total:** {format_money(order.total, currency)}"
        md.update(header + table + footer)

        select = self.query_one("#select-status", Select)
        if order.status in ORDER_STATUSES:
            with self.prevent(Select.Changed):
                select.value = order.status
        self.query_one("#btn-update-status", Button).disabled = False

    @on(Button.Pressed, "#btn-update-status")
    @work(exclusive=True)
    async def handle_update_status(self) -> None:
        order = self._current()
        if order is None:
            return
        new_status = self.query_one("#select-status", Select).value
        if new_status == order.status:
            self.notify("Nothing to update.", severity="warning")
            return
        try:
            self.app.state.gate.require_admin()
            await self.app.state.order_manager.update_order_status(order.id, new_status)
        except ValidationError as exc:
            self.notify(str(exc), severity="error")
            return
        except (AdminAuthError, AuthError, StoreWriteError) as exc:
            _logger.error(f"Status update failed: {exc}")
            self.notify(f"Update failed: {exc}", severity="error")
            return
        self.notify(f"Order marked {new_status}.")
