# provide dataclass models and their document mappings

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Tuple

OrderStatus = Literal["Pending", "Processing", "Shipped", "Delivered", "Cancelled"]
ORDER_STATUSES: Tuple[str, ...] = (
    "Pending",
    "Processing",
    "Shipped",
    "Delivered",
    "Cancelled",
)

PLACEHOLDER_IMAGE = "https://placehold.co/400x400?text=No+Image"


def _parse_ts(val) -> Optional[datetime]:
    if not val:
        return None
    try:
        return datetime.fromisoformat(val)
    except (TypeError, ValueError):
        return None


def _to_float(val, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _to_int(val, default: int = 0) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Identity:
    uid: str
    provider: str  # "anonymous" or "token"
    created_at: datetime


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    category: str
    description: str
    image: str
    stock: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> Product:
        return cls(
            id=str(doc["id"]),
            name=str(doc.get("name") or ""),
            price=_to_float(doc.get("price")),
            category=str(doc.get("category") or ""),
            description=str(doc.get("description") or ""),
            image=str(doc.get("image") or PLACEHOLDER_IMAGE),
            stock=_to_int(doc.get("stock")),
            created_at=_parse_ts(doc.get("createdAt")),
            updated_at=_parse_ts(doc.get("updatedAt")),
        )


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    price: float  # unit price when the product was added
    image: str
    qty: int

    @property
    def subtotal(self) -> float:
        return self.price * self.qty

    def to_doc(self) -> Dict[str, Any]:
        return {
            "id": self.product_id,
            "name": self.name,
            "price": self.price,
            "image": self.image,
            "qty": self.qty,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> CartLine:
        return cls(
            product_id=str(doc.get("id") or ""),
            name=str(doc.get("name") or ""),
            price=_to_float(doc.get("price")),
            image=str(doc.get("image") or ""),
            qty=_to_int(doc.get("qty"), 1),
        )


@dataclass(frozen=True)
class Order:
    id: str
    customer_name: str
    phone: str
    address: str
    items: Tuple[CartLine, ...]
    total: float  # stored at checkout, never recomputed
    status: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> Order:
        return cls(
            id=str(doc["id"]),
            customer_name=str(doc.get("customerName") or ""),
            phone=str(doc.get("phone") or ""),
            address=str(doc.get("address") or ""),
            items=tuple(CartLine.from_doc(i) for i in doc.get("items") or []),
            total=_to_float(doc.get("total")),
            status=str(doc.get("status") or "Pending"),
            created_at=_parse_ts(doc.get("createdAt")),
        )
