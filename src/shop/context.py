# explicit client context: store, identity and subscriptions for one app run
from __future__ import annotations

from typing import List, Optional, Union

from db.database import Database
from db.docstore import DocumentStore, ErrorCallback, SnapshotCallback, Subscription
from db.identity import IdentityService
from db.models import Identity
from shop.config import Config, load_config
from shop.errors import AuthError, ConfigurationError
from utils.logger import get_logger

_logger = get_logger(__name__)


class UnconfiguredContext:
    """Stands in for a ClientContext when required configuration is absent."""

    configured = False

    def __init__(self, error: ConfigurationError):
        self.error = error

    @property
    def missing(self) -> List[str]:
        return self.error.missing

    async def start(self) -> None:
        return None

    async def close(self) -> None:
        return None


class ClientContext:
    """
    Owns the store handle and the session identity.

    Store access goes through ``store``, which refuses until ``start`` has
    acquired an identity; this keeps subscriptions from opening early.
    """

    configured = True

    def __init__(
        self,
        config: Config,
        store: Optional[DocumentStore] = None,
        identity_service: Optional[IdentityService] = None,
    ):
        self.config = config
        db = Database(config.db_path)
        self._store = store or DocumentStore(db, poll_interval=config.poll_interval)
        self._identity_service = identity_service or IdentityService(db)
        self.identity: Optional[Identity] = None
        self._subscriptions: List[Subscription] = []

    @property
    def products_path(self) -> str:
        return f"stores/{self.config.store_id}/products"

    @property
    def orders_path(self) -> str:
        return f"stores/{self.config.store_id}/orders"

    @property
    def store(self) -> DocumentStore:
        if self.identity is None:
            raise AuthError("Store is not available before sign-in.")
        return self._store

    @property
    def ready(self) -> bool:
        return self.identity is not None

    async def start(self) -> Identity:
        """Acquire the session identity once; raises AuthError on failure."""
        if self.identity is not None:
            return self.identity
        try:
            if self.config.auth_token:
                self.identity = await self._identity_service.sign_in_with_token(
                    self.config.auth_token
                )
            else:
                self.identity = await self._identity_service.sign_in_anonymously()
        except AuthError:
            _logger.exception("Identity bootstrap failed, store access withheld.")
            raise
        return self.identity

    def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        sub = self.store.subscribe(path, on_snapshot, on_error)
        self._subscriptions.append(sub)
        return sub

    async def unsubscribe(self, sub: Subscription) -> None:
        await sub.close()
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    async def close(self) -> None:
        try:
            for sub in list(self._subscriptions):
                await self.unsubscribe(sub)
        finally:
            self._subscriptions.clear()
            await self._store.close()
            self.identity = None


def build_context(
    environ=None,
) -> Union[ClientContext, UnconfiguredContext]:
    try:
        config = load_config(environ)
    except ConfigurationError as exc:
        _logger.error(str(exc))
        return UnconfiguredContext(exc)
    return ClientContext(config)
