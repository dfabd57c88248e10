from typing import List, Optional

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Markdown, Select

from db.models import Product
from shop.catalog import categories, filter_products
from shop.errors import ValidationError
from utils.messages import CartChangedMessage, CatalogUpdatedMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import BaseScreen

ALL_CATEGORIES = "__all__"


class CatalogScreen(BaseScreen):
    """
    Public product list. Rebuilt from the live products view on every snapshot.
    """

    BINDINGS = [
        Binding("a", "add_to_cart", "Add to Cart", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._shown: List[Product] = []
        self._selected: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-filters"):
                yield Input(id="input-search", placeholder="Search products...")
                yield Select(
                    [("All categories", ALL_CATEGORIES)],
                    id="select-category",
                    allow_blank=False,
                )
            yield Label("", id="label-catalog-status")
            yield DataTable(id="table-products")
            yield Markdown("", id="md-product")
            with Horizontal(id="hort-buttons"):
                yield Button("Add to Cart", id="btn-addcart", variant="primary")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Stock")
        self.query_one("#input-search").focus()
        self.rebuild()

    @on(CatalogUpdatedMessage)
    @on(ScreenResume)
    def handle_catalog_update(self) -> None:
        self.rebuild()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-category")
    def handle_filter_change(self) -> None:
        self.rebuild(refresh_categories=False)

    def _current_category(self) -> Optional[str]:
        val = self.query_one("#select-category", Select).value
        return None if val == ALL_CATEGORIES else val

    def rebuild(self, refresh_categories: bool = True) -> None:
        products = self.app.state.products
        currency = self.app.state.ctx.config.currency

        status = self.query_one("#label-catalog-status", Label)
        if products.loading:
            status.update("Loading products...")
        elif products.error is not None:
            status.update("Could not refresh products, showing the last known list.")
        elif not products.items:
            status.update("No products available yet.")
        else:
            status.update("")

        if refresh_categories:
            select = self.query_one("#select-category", Select)
            current = select.value
            options = [("All categories", ALL_CATEGORIES)]
            options += [(c, c) for c in categories(products.items)]
            with self.prevent(Select.Changed):
                select.set_options(options)
                if any(v == current for _, v in options):
                    select.value = current

        query = self.query_one("#input-search", Input).value
        self._shown = filter_products(products.items, query, self._current_category())

        table = self.query_one(DataTable)
        table.clear()
        for p in self._shown:
            stock = str(p.stock) if p.in_stock else "Sold out"
            table.add_row(p.name, p.category, format_money(p.price, currency), stock, key=p.id)

        if self._selected and any(p.id == self._selected for p in self._shown):
            table.move_cursor(row=table.get_row_index(self._selected))
        self.render_detail()

    def _highlighted(self) -> Optional[Product]:
        table = self.query_one(DataTable)
        if not self._shown or table.cursor_row is None:
            return None
        if 0 <= table.cursor_row < len(self._shown):
            return self._shown[table.cursor_row]
        return None

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self.render_detail()

    def render_detail(self) -> None:
        product = self._highlighted()
        md = self.query_one("#md-product", Markdown)
        btn = self.query_one("#btn-addcart", Button)
        if product is None:
            md.update("")
            btn.disabled = True
            return
        self._selected = product.id
        currency = self.app.state.ctx.config.currency
        rows = [
            ["Price", format_money(product.price, currency)],
            ["Category", product.category],
            ["In stock", product.stock],
        ]
        body = f"### {product.name}\n\n{product.description}\n\n"
        md.update(body + generate_markdown_table(["", ""], rows, ["l", "l"]))
        btn.disabled = not product.in_stock

    @on(DataTable.RowSelected)
    @on(Button.Pressed, "#btn-addcart")
    def action_add_to_cart(self) -> None:
        product = self._highlighted()
        if product is None:
            return
        try:
            line = self.app.state.cart.add_to_cart(product)
        except ValidationError as exc:
            self.notify(str(exc), severity="warning")
            return
        self.notify(f"{line.name} x{line.qty} in cart.")
        self.post_message(CartChangedMessage())
