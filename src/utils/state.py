from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from db.docstore import Subscription
from db.models import Order, Product
from shop.access import AccessGate
from shop.cart import Cart
from shop.collection import CollectionView
from shop.context import ClientContext, UnconfiguredContext
from shop.errors import AuthError
from shop.orders import OrderManager, sort_orders
from shop.products import ProductManager
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - ctx: client context, or the unconfigured stand-in
      - cart: this session's cart
      - products / orders: live views over the two collections
      - gate: admin shared-secret gate
    """

    ctx: Union[ClientContext, UnconfiguredContext]
    cart: Cart = field(default_factory=Cart)
    products: CollectionView[Product] = field(
        default_factory=lambda: CollectionView("products", Product.from_doc)
    )
    orders: CollectionView[Order] = field(
        default_factory=lambda: CollectionView("orders", Order.from_doc, sort_orders)
    )
    gate: AccessGate = field(init=False)

    _orders_sub: Optional[Subscription] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        secret = self.ctx.config.admin_password if self.ctx.configured else None
        self.gate = AccessGate(secret)

    @property
    def configured(self) -> bool:
        return self.ctx.configured

    @property
    def ready(self) -> bool:
        return self.ctx.configured and self.ctx.ready

    @property
    def product_manager(self) -> ProductManager:
        return ProductManager(self.ctx)

    @property
    def order_manager(self) -> OrderManager:
        return OrderManager(self.ctx)

    async def start_session(self) -> bool:
        """
        Sign in, then open the catalog subscription.
        Returns False when the identity could not be acquired; the catalog then
        stays empty and nothing is subscribed.
        """
        if not self.ctx.configured:
            return False
        try:
            await self.ctx.start()
        except AuthError:
            self.products.loading = False
            return False
        self.ctx.subscribe(
            self.ctx.products_path,
            self.products.apply_snapshot,
            self.products.apply_error,
        )
        return True

    def unlock_admin(self, candidate: str) -> bool:
        """Check the admin password and start following orders on success."""
        if not self.gate.check_admin_password(candidate):
            return False
        if self.ready and self._orders_sub is None:
            self._orders_sub = self.ctx.subscribe(
                self.ctx.orders_path,
                self.orders.apply_snapshot,
                self.orders.apply_error,
            )
        return True

    async def lock_admin(self) -> None:
        self.gate.lock()
        if self._orders_sub is not None:
            await self.ctx.unsubscribe(self._orders_sub)
            self._orders_sub = None
        self.orders.reset()

    async def end_session(self) -> None:
        """Called when the app quits."""
        self.gate.lock()
        self._orders_sub = None
        await self.ctx.close()

    def on_change(
        self,
        products: Callable[[CollectionView[Product]], None],
        orders: Callable[[CollectionView[Order]], None],
    ) -> None:
        self.products.listen(products)
        self.orders.listen(orders)
