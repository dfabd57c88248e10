from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from db.docstore import SERVER_TIMESTAMP
from db.models import ORDER_STATUSES, Order
from shop.cart import Cart
from shop.context import ClientContext
from shop.errors import ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)

CUSTOMER_FIELDS = {
    "name": "Name",
    "phone": "Phone",
    "address": "Address",
}

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(order: Order):
    ts = order.created_at
    if ts is None:
        ts = _OLDEST
    elif ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts, order.id


def sort_orders(orders: Iterable[Order]) -> List[Order]:
    """Newest first; orders without a timestamp go last."""
    return sorted(orders, key=_sort_key, reverse=True)


def order_summary(orders: Iterable[Order]) -> Dict[str, Any]:
    """Count per status plus revenue over every order that was not cancelled."""
    counts = {status: 0 for status in ORDER_STATUSES}
    revenue = 0.0
    total_orders = 0
    for o in orders:
        total_orders += 1
        counts[o.status] = counts.get(o.status, 0) + 1
        if o.status != "Cancelled":
            revenue += o.total
    return {"orders": total_orders, "by_status": counts, "revenue": revenue}


class OrderManager:
    """Checkout and admin status changes."""

    def __init__(self, ctx: ClientContext):
        self._ctx = ctx

    async def place_order(self, customer_info: Mapping[str, Any], cart: Cart) -> str:
        """
        Persist the cart as a new Pending order and clear the cart.

        Items are copied, and the total is taken from the cart at this moment
        and stored, so later product edits never change a placed order.
        On a failed write the cart is kept.
        """
        if cart.is_empty:
            raise ValidationError("Your cart is empty.", field="cart")

        info = {}
        for key, label in CUSTOMER_FIELDS.items():
            val = str(customer_info.get(key) or "").strip()
            if not val:
                raise ValidationError(f"{label} is required.", field=key)
            info[key] = val

        store = self._ctx.store
        doc = {
            "customerName": info["name"],
            "phone": info["phone"],
            "address": info["address"],
            "items": cart.snapshot(),
            "total": cart.compute_total(),
            "status": "Pending",
            "createdAt": SERVER_TIMESTAMP,
        }
        order_id = await store.create(self._ctx.orders_path, doc)
        cart.clear()
        _logger.info(
            f"Order {order_id} placed: {len(doc['items'])} items, total {doc['total']}"
        )
        return order_id

    async def update_order_status(self, order_id: str, new_status: str) -> None:
        """Any status may move to any other, there is no transition table."""
        if new_status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {new_status}", field="status")
        await self._ctx.store.update(
            self._ctx.orders_path, order_id, {"status": new_status}
        )
        _logger.info(f"Order {order_id} set to {new_status}")
