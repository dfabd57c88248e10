from __future__ import annotations

import math
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from db.docstore import SERVER_TIMESTAMP
from db.models import PLACEHOLDER_IMAGE, Product
from shop.context import ClientContext
from shop.errors import ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)

REQUIRED_FIELDS = ("name", "price", "category", "stock")


def _text(fields: Mapping[str, Any], key: str) -> str:
    val = fields.get(key)
    return "" if val is None else str(val).strip()


def _parse_price(raw: str) -> float:
    try:
        price = float(raw)
    except ValueError:
        raise ValidationError("Price must be a number.", field="price") from None
    if not math.isfinite(price):
        raise ValidationError("Price must be a number.", field="price")
    if price < 0:
        raise ValidationError("Price cannot be negative.", field="price")
    return price


def _parse_stock(raw: str) -> int:
    try:
        stock = float(raw)
    except ValueError:
        raise ValidationError("Stock must be a whole number.", field="stock") from None
    if not math.isfinite(stock) or stock != int(stock):
        raise ValidationError("Stock must be a whole number.", field="stock")
    if stock < 0:
        raise ValidationError("Stock cannot be negative.", field="stock")
    return int(stock)


def validate_product_form(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check and coerce the admin product form.
    Returns name, price, category, description and stock ready to store.
    """
    for key in REQUIRED_FIELDS:
        if not _text(fields, key):
            raise ValidationError(f"{key.capitalize()} is required.", field=key)
    return {
        "name": _text(fields, "name"),
        "price": _parse_price(_text(fields, "price")),
        "category": _text(fields, "category"),
        "description": _text(fields, "description"),
        "stock": _parse_stock(_text(fields, "stock")),
    }


class ProductManager:
    """Create, edit and delete catalog entries for the admin dashboard."""

    def __init__(self, ctx: ClientContext):
        self._ctx = ctx

    async def submit_product(
        self,
        form_fields: Mapping[str, Any],
        existing: Optional[Product] = None,
        image: Optional[str] = None,
    ) -> str:
        """
        Save the product form, returning the product id.

        image must already be prepared by shop.images.prepare_image; without
        one the existing image is kept, or the placeholder is used for a new
        product. Raises ValidationError before touching the store.
        """
        doc = validate_product_form(form_fields)
        if image:
            doc["image"] = image
        elif existing is not None and existing.image:
            doc["image"] = existing.image
        else:
            doc["image"] = PLACEHOLDER_IMAGE
        doc["updatedAt"] = SERVER_TIMESTAMP

        store = self._ctx.store
        path = self._ctx.products_path
        if existing is not None:
            await store.update(path, existing.id, doc)
            _logger.info(f"Product {existing.id} ({doc['name']}) updated.")
            return existing.id

        doc["createdAt"] = SERVER_TIMESTAMP
        product_id = await store.create(path, doc)
        _logger.info(f"Product {product_id} ({doc['name']}) created.")
        return product_id

    async def delete_product(
        self, product_id: str, confirm: Callable[[], Awaitable[bool]]
    ) -> bool:
        """
        Delete a product once confirm() resolves True.
        Orders keep their own copies of the items and are not touched.
        """
        if not await confirm():
            return False
        await self._ctx.store.delete(self._ctx.products_path, product_id)
        _logger.info(f"Product {product_id} deleted.")
        return True
