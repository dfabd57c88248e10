# document collections with live full-snapshot subscriptions
from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

import aiosqlite

from db.database import Database
from shop.errors import StoreReadError, StoreWriteError
from utils.logger import get_logger

_logger = get_logger(__name__)

Document = Dict[str, Any]
SnapshotCallback = Callable[[List[Document]], None]
ErrorCallback = Callable[[StoreReadError], None]


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# placeholder replaced by the store's clock when the document is written
SERVER_TIMESTAMP = _ServerTimestamp()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _decode(data: str) -> Document:
    doc = json.loads(data)
    if not isinstance(doc, dict):
        raise ValueError("not a JSON object")
    return doc


def _resolve_timestamps(doc: Document) -> Document:
    now = _now_iso()
    return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in doc.items()}


class Subscription:
    """
    A live listener on one collection.

    Delivers the whole collection to on_snapshot once on open and again after
    every change to it. Read failures go to on_error and are retried on the
    next poll. A listener that raises is logged and the subscription keeps
    running.
    """

    def __init__(
        self,
        store: DocumentStore,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback],
        poll_interval: float,
    ):
        self.path = path
        self._store = store
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._poll_interval = poll_interval
        self._wake = asyncio.Event()
        self._last_rev: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name=f"subscription:{self.path}")

    def poke(self) -> None:
        self._wake.set()

    async def _poll_once(self) -> None:
        rev = await self._store.revision(self.path)
        if rev == self._last_rev:
            return
        docs = await self._store.get_all(self.path)
        self._last_rev = rev
        self._on_snapshot(docs)

    def _report(self, exc: StoreReadError) -> None:
        _logger.error(f"Subscription on {self.path} failed: {exc}")
        if self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            _logger.exception(f"Error listener on {self.path} failed")

    async def _run(self) -> None:
        while True:
            self._wake.clear()
            try:
                await self._poll_once()
            except StoreReadError as exc:
                self._report(exc)
            except Exception:
                # a failing listener must not stop later snapshots
                _logger.exception(f"Snapshot listener on {self.path} failed")
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass

    async def close(self) -> None:
        self._store._subscriptions.discard(self)
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception:
            _logger.exception(f"Subscription on {self.path} had stopped with an error")
        self._task = None


class DocumentStore:
    """
    Schemaless JSON documents grouped in collections addressed by path,
    e.g. ``stores/<store_id>/products``.

    Writes return once committed; readers see them through the next snapshot.
    """

    def __init__(self, db: Database, poll_interval: float = 1.0):
        self._db = db
        self.poll_interval = poll_interval
        self._subscriptions: Set[Subscription] = set()

    # ---------------------------
    # Reads
    # ---------------------------

    async def revision(self, path: str) -> int:
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    "SELECT rev FROM revisions WHERE path = ?;", (path,)
                )
                row = await cur.fetchone()
                await cur.close()
        except (aiosqlite.Error, OSError) as exc:
            raise StoreReadError(f"Could not read {path}: {exc}") from exc
        return int(row[0]) if row else 0

    async def get_all(self, path: str) -> List[Document]:
        """Return every document of the collection, in insertion order, with its id."""
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    "SELECT id, data FROM documents WHERE path = ? ORDER BY seq;",
                    (path,),
                )
                rows = await cur.fetchall()
                await cur.close()
        except (aiosqlite.Error, OSError) as exc:
            raise StoreReadError(f"Could not read {path}: {exc}") from exc
        docs = []
        for doc_id, data in rows:
            try:
                docs.append({**_decode(data), "id": doc_id})
            except ValueError as exc:
                _logger.warning(f"Skipping unreadable document {path}/{doc_id}: {exc}")
        return docs

    async def get(self, path: str, doc_id: str) -> Optional[Document]:
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    "SELECT data FROM documents WHERE path = ? AND id = ?;",
                    (path, doc_id),
                )
                row = await cur.fetchone()
                await cur.close()
        except (aiosqlite.Error, OSError) as exc:
            raise StoreReadError(f"Could not read {path}/{doc_id}: {exc}") from exc
        if not row:
            return None
        try:
            return {**_decode(row[0]), "id": doc_id}
        except ValueError as exc:
            raise StoreReadError(f"Unreadable document {path}/{doc_id}: {exc}") from exc

    def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """Open a live subscription; must be called from a running event loop."""
        sub = Subscription(self, path, on_snapshot, on_error, self.poll_interval)
        self._subscriptions.add(sub)
        sub.start()
        _logger.debug(f"Subscribed to {path}")
        return sub

    # ---------------------------
    # Writes
    # ---------------------------

    @staticmethod
    async def _bump(conn: aiosqlite.Connection, path: str) -> None:
        await conn.execute(
            """
            INSERT INTO revisions(path, rev) VALUES (?, 1)
            ON CONFLICT(path) DO UPDATE SET rev = rev + 1;
            """,
            (path,),
        )

    def _notify(self, path: str) -> None:
        for sub in list(self._subscriptions):
            if sub.path == path:
                sub.poke()

    @staticmethod
    def _encode(doc: Document) -> str:
        body = {k: v for k, v in _resolve_timestamps(doc).items() if k != "id"}
        try:
            return json.dumps(body)
        except (TypeError, ValueError) as exc:
            raise StoreWriteError(f"Document is not serializable: {exc}") from exc

    async def create(self, path: str, doc: Document) -> str:
        """Insert a new document and return its store-assigned id."""
        doc_id = uuid.uuid4().hex[:20]
        data = self._encode(doc)
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    "SELECT COALESCE(MAX(seq), 0) + 1 FROM documents WHERE path = ?;",
                    (path,),
                )
                seq = (await cur.fetchone())[0]
                await cur.close()
                await conn.execute(
                    "INSERT INTO documents(path, id, data, seq) VALUES (?, ?, ?, ?);",
                    (path, doc_id, data, seq),
                )
                await self._bump(conn, path)
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            _logger.error(f"Create in {path} failed: {exc}")
            raise StoreWriteError(f"Could not save to {path}: {exc}") from exc
        _logger.info(f"Created {path}/{doc_id}")
        self._notify(path)
        return doc_id

    async def update(self, path: str, doc_id: str, partial: Document) -> None:
        """Merge the given fields into an existing document; other fields are kept."""
        changes = json.loads(self._encode(partial))
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    "SELECT data FROM documents WHERE path = ? AND id = ?;",
                    (path, doc_id),
                )
                row = await cur.fetchone()
                await cur.close()
                if not row:
                    raise StoreWriteError(f"No document {doc_id} in {path}")
                try:
                    merged = {**_decode(row[0]), **changes}
                except ValueError as exc:
                    raise StoreWriteError(
                        f"Unreadable document {path}/{doc_id}: {exc}"
                    ) from exc
                await conn.execute(
                    "UPDATE documents SET data = ? WHERE path = ? AND id = ?;",
                    (json.dumps(merged), path, doc_id),
                )
                await self._bump(conn, path)
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            _logger.error(f"Update of {path}/{doc_id} failed: {exc}")
            raise StoreWriteError(f"Could not update {path}/{doc_id}: {exc}") from exc
        _logger.info(f"Updated {path}/{doc_id}: {', '.join(sorted(changes))}")
        self._notify(path)

    async def delete(self, path: str, doc_id: str) -> None:
        """Remove a document; removing a missing one is not an error."""
        try:
            async with self._db.connect() as conn:
                await conn.execute(
                    "DELETE FROM documents WHERE path = ? AND id = ?;",
                    (path, doc_id),
                )
                await self._bump(conn, path)
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            _logger.error(f"Delete of {path}/{doc_id} failed: {exc}")
            raise StoreWriteError(f"Could not delete {path}/{doc_id}: {exc}") from exc
        _logger.info(f"Deleted {path}/{doc_id}")
        self._notify(path)

    async def close(self) -> None:
        """Tear down every open subscription."""
        for sub in list(self._subscriptions):
            await sub.close()
