from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label

from db.models import Product
from shop.errors import AdminAuthError, AuthError, StoreWriteError, ValidationError
from shop.images import prepare_image
from utils.logger import get_logger
from utils.messages import CatalogUpdatedMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDeleteModal

_logger = get_logger(__name__)

FORM_FIELDS = ("name", "price", "category", "stock", "description")


class AdminProductsScreen(BaseScreen):
    """
    Product management: pick a row to edit it, or start a new product.
    The table only changes when the next snapshot arrives, not on submit.
    """

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self._editing: Optional[Product] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal():
            yield DataTable(id="table-admin-products")
            with VerticalScroll(id="div-product-form"):
                yield Label("New product", id="label-form-title")
                yield Label("Name")
                yield Input(id="input-name")
                yield Label("Price")
                yield Input(
                    id="input-price", type="number", validators=[Number(minimum=0.0)]
                )
                yield Label("Category")
                yield Input(id="input-category")
                yield Label("Stock")
                yield Input(id="input-stock", type="integer", validators=[Number(minimum=0)])
                yield Label("Description")
                yield Input(id="input-description")
                yield Label("Image file (optional)")
                yield Input(id="input-image", placeholder="/path/to/photo.jpg")
                with Horizontal(id="div-form-btns"):
                    yield Button("New", id="btn-new")
                    yield Button("Delete", id="btn-delete", variant="error")
                    yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Stock")
        self.rebuild()
        self.load_form(None)

    @on(CatalogUpdatedMessage)
    @on(ScreenResume)
    def handle_catalog_update(self) -> None:
        self.rebuild()

    def rebuild(self) -> None:
        currency = self.app.state.ctx.config.currency
        self._products = list(self.app.state.products.items)
        table = self.query_one(DataTable)
        table.clear()
        for p in self._products:
            table.add_row(p.name, p.category, format_money(p.price, currency), str(p.stock), key=p.id)

        # the product being edited may have been changed or deleted elsewhere
        if self._editing is not None:
            current = self.app.state.products.get(self._editing.id)
            if current is None:
                self.notify(f"{self._editing.name} was deleted.", severity="warning")
                self.load_form(None)
            else:
                self._editing = current

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        self.load_form(self.app.state.products.get(event.row_key.value))

    def load_form(self, product: Optional[Product]) -> None:
        self._editing = product
        for key in FORM_FIELDS:
            val = getattr(product, key) if product is not None else ""
            inp = self.query_one(f"#input-{key}", Input)
            inp.value = "" if val is None else str(val)
            inp.remove_class("-invalid")
        self.query_one("#input-image", Input).value = ""
        title = f"Editing: {product.name}" if product else "New product"
        self.query_one("#label-form-title", Label).update(title)
        self.query_one("#btn-delete", Button).disabled = product is None

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.load_form(None)
        self.query_one("#input-name").focus()

    def _read_image(self) -> Optional[str]:
        path = self.query_one("#input-image", Input).value.strip()
        if not path:
            return None
        try:
            raw = Path(path).expanduser().read_bytes()
        except OSError as exc:
            raise ValidationError(
                f"Cannot read image: {exc.strerror}", field="image"
            ) from None
        return prepare_image(raw, self.app.image_downscaler)

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        try:
            self.app.state.gate.require_admin()
            fields = {k: self.query_one(f"#input-{k}", Input).value for k in FORM_FIELDS}
            image = self._read_image()
            product_id = await self.app.state.product_manager.submit_product(
                fields, self._editing, image
            )
        except ValidationError as exc:
            if exc.field:
                inp = self.query(f"#input-{exc.field}")
                if inp:
                    inp.first().add_class("-invalid")
                    inp.first().focus()
            self.notify(str(exc), severity="error")
            return
        except (AdminAuthError, AuthError, StoreWriteError) as exc:
            _logger.error(f"Saving product failed: {exc}")
            self.notify(f"Save failed: {exc}", severity="error")
            return

        self.notify("Product updated." if self._editing else "Product added.")
        if self._editing is None:
            self.load_form(None)
        _logger.debug(f"Saved product {product_id}")

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        product = self._editing
        if product is None:
            return

        async def confirm() -> bool:
            return await self.app.push_screen_wait(ConfirmDeleteModal(product.name))

        try:
            self.app.state.gate.require_admin()
            deleted = await self.app.state.product_manager.delete_product(
                product.id, confirm
            )
        except (AdminAuthError, AuthError, StoreWriteError) as exc:
            _logger.error(f"Deleting product failed: {exc}")
            self.notify(f"Delete failed: {exc}", severity="error")
            return
        if deleted:
            self.notify(f"{product.name} deleted.")
            self.load_form(None)
