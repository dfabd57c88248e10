from __future__ import annotations

from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

from shop.errors import StoreReadError
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


class CollectionView(Generic[T]):
    """
    Latest known state of one subscribed collection.

    Every snapshot replaces ``items`` as a whole (never merged), so readers
    always hold a consistent tuple. A read error keeps the previous items and
    only clears the loading flag.

    Fields:
      - items: immutable tuple of parsed documents, empty until the first snapshot
      - loading: True until a snapshot or an error arrives
      - error: last read error, cleared by the next good snapshot
    """

    def __init__(
        self,
        name: str,
        parse: Callable[[Dict[str, Any]], T],
        order: Optional[Callable[[Iterable[T]], List[T]]] = None,
    ):
        self.name = name
        self._parse = parse
        self._order = order
        self._items: Tuple[T, ...] = ()
        self._listeners: List[Callable[[CollectionView[T]], None]] = []
        self.loading = True
        self.error: Optional[StoreReadError] = None

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def get(self, item_id: str) -> Optional[T]:
        for item in self._items:
            if getattr(item, "id", None) == item_id:
                return item
        return None

    def listen(self, callback: Callable[[CollectionView[T]], None]) -> None:
        self._listeners.append(callback)

    def _emit(self) -> None:
        for cb in list(self._listeners):
            cb(self)

    def apply_snapshot(self, docs: List[Dict[str, Any]]) -> None:
        parsed: List[T] = []
        for doc in docs:
            try:
                parsed.append(self._parse(doc))
            except (KeyError, TypeError, ValueError) as exc:
                _logger.warning(f"Skipping malformed {self.name} document: {exc}")
        if self._order is not None:
            parsed = self._order(parsed)
        self._items = tuple(parsed)
        self.loading = False
        self.error = None
        _logger.debug(f"{self.name}: snapshot with {len(self._items)} documents")
        self._emit()

    def apply_error(self, error: StoreReadError) -> None:
        _logger.error(f"{self.name}: {error}")
        self.loading = False
        self.error = error
        self._emit()

    def reset(self) -> None:
        self._items = ()
        self.loading = True
        self.error = None
        self._emit()
