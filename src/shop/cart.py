from __future__ import annotations

from typing import List, Optional, Tuple

from db.models import CartLine, Product
from shop.errors import ValidationError


class Cart:
    """
    In-memory cart of one session, lost when the app exits.

    Holds at most one line per product id. Lines are frozen snapshots of the
    product's display fields at the time it was added, so later catalog edits
    do not change what is in the cart.
    """

    def __init__(self) -> None:
        self._lines: List[CartLine] = []

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def line_count(self) -> int:
        """Number of distinct products, shown on the cart badge."""
        return len(self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.qty for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def _index(self, product_id: str) -> Optional[int]:
        for i, line in enumerate(self._lines):
            if line.product_id == product_id:
                return i
        return None

    def add_to_cart(self, product: Product) -> CartLine:
        if product.stock <= 0:
            raise ValidationError(f"{product.name} is out of stock.", field="stock")

        idx = self._index(product.id)
        if idx is not None:
            old = self._lines[idx]
            line = CartLine(old.product_id, old.name, old.price, old.image, old.qty + 1)
            self._lines[idx] = line
        else:
            line = CartLine(
                product_id=product.id,
                name=product.name,
                price=product.price,
                image=product.image,
                qty=1,
            )
            self._lines.append(line)
        return line

    def update_quantity(self, product_id: str, delta: int) -> None:
        """Change a line's quantity by delta, never going below 1."""
        idx = self._index(product_id)
        if idx is None:
            return
        old = self._lines[idx]
        qty = max(1, old.qty + delta)
        self._lines[idx] = CartLine(old.product_id, old.name, old.price, old.image, qty)

    def remove_from_cart(self, product_id: str) -> None:
        self._lines = [line for line in self._lines if line.product_id != product_id]

    def clear(self) -> None:
        self._lines = []

    def compute_total(self) -> float:
        return sum((line.price * line.qty for line in self._lines), 0.0)

    def snapshot(self) -> List[dict]:
        """Independent copy of the lines as plain documents, for checkout."""
        return [line.to_doc() for line in self._lines]
