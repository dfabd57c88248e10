import asyncio
from datetime import datetime

from support import StoreTestCase

from db.database import Database
from db.docstore import SERVER_TIMESTAMP, DocumentStore, Subscription
from db.identity import IdentityService
from shop.collection import CollectionView
from shop.errors import AuthError, StoreReadError, StoreWriteError

PATH = "stores/test_store/things"


class FlakyStore(DocumentStore):
    """Read failures on demand."""

    fail_reads = False

    async def revision(self, path):
        if self.fail_reads:
            raise StoreReadError("store unreachable")
        return await super().revision(path)


class DocumentStoreTestCase(StoreTestCase):
    async def wait_for(self, predicate, timeout=2.0):
        async def _poll():
            while not predicate():
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_poll(), timeout)

    # ---------- writes ----------

    async def test_create_get_update_delete(self):
        store = self.ctx.store
        doc_id = await store.create(PATH, {"name": "Soap", "price": 10, "createdAt": SERVER_TIMESTAMP})
        self.assertTrue(doc_id)

        doc = await store.get(PATH, doc_id)
        self.assertEqual(doc["id"], doc_id)
        self.assertEqual(doc["name"], "Soap")
        self.assertIsInstance(datetime.fromisoformat(doc["createdAt"]), datetime)

        # partial update keeps unspecified fields
        await store.update(PATH, doc_id, {"price": 12})
        doc = await store.get(PATH, doc_id)
        self.assertEqual((doc["name"], doc["price"]), ("Soap", 12))

        await store.delete(PATH, doc_id)
        self.assertIsNone(await store.get(PATH, doc_id))
        # deleting again is fine
        await store.delete(PATH, doc_id)

    async def test_update_missing_document_fails(self):
        with self.assertRaises(StoreWriteError):
            await self.ctx.store.update(PATH, "nope", {"price": 1})

    async def test_unserializable_document_fails(self):
        with self.assertRaises(StoreWriteError):
            await self.ctx.store.create(PATH, {"when": object()})

    async def test_get_all_is_insertion_ordered_and_namespaced(self):
        store = self.ctx.store
        ids = [await store.create(PATH, {"n": i}) for i in range(3)]
        await store.create("stores/other_store/things", {"n": 99})

        docs = await store.get_all(PATH)
        self.assertEqual([d["id"] for d in docs], ids)
        self.assertEqual([d["n"] for d in docs], [0, 1, 2])

    async def test_write_failure_on_unreachable_file(self):
        # a directory cannot be opened as a database file
        bad = DocumentStore(Database(self.temp_dir.name))
        with self.assertRaises(StoreWriteError):
            await bad.create(PATH, {"a": 1})

    # ---------- subscriptions ----------

    async def test_subscription_delivers_full_snapshots(self):
        snapshots = []
        sub = self.ctx.subscribe(PATH, snapshots.append)
        await self.wait_for(lambda: len(snapshots) >= 1)
        self.assertEqual(snapshots[0], [])

        first = await self.ctx.store.create(PATH, {"name": "a"})
        await self.wait_for(lambda: len(snapshots) >= 2)
        second = await self.ctx.store.create(PATH, {"name": "b"})
        await self.wait_for(lambda: len(snapshots[-1]) == 2)

        self.assertEqual([d["id"] for d in snapshots[-1]], [first, second])
        self.assertTrue(sub.active)
        await self.ctx.unsubscribe(sub)
        self.assertFalse(sub.active)

    async def test_subscription_sees_writes_from_another_client(self):
        snapshots = []
        self.ctx.subscribe(PATH, snapshots.append)
        await self.wait_for(lambda: len(snapshots) >= 1)

        # a second store on the same file, as another process would have
        other = DocumentStore(Database(self.config.db_path))
        await other.create(PATH, {"name": "remote"})
        await self.wait_for(lambda: snapshots and len(snapshots[-1]) == 1)
        self.assertEqual(snapshots[-1][0]["name"], "remote")

    async def test_read_error_keeps_previous_view_and_recovers(self):
        store = FlakyStore(Database(self.config.db_path), poll_interval=0.05)
        await store.create(PATH, {"name": "kept"})

        view = CollectionView("things", lambda d: d["name"])
        errors = []

        def on_error(exc):
            errors.append(exc)
            view.apply_error(exc)

        sub = store.subscribe(PATH, view.apply_snapshot, on_error)
        await self.wait_for(lambda: not view.loading)
        self.assertEqual(view.items, ("kept",))

        store.fail_reads = True
        await self.wait_for(lambda: errors)
        self.assertEqual(view.items, ("kept",))
        self.assertIsInstance(view.error, StoreReadError)

        store.fail_reads = False
        await store.create(PATH, {"name": "new"})
        await self.wait_for(lambda: len(view.items) == 2)
        self.assertIsNone(view.error)
        await sub.close()

    async def put_raw(self, doc_id, data):
        async with Database(self.config.db_path).connect() as conn:
            await conn.execute(
                "INSERT INTO documents(path, id, data, seq) VALUES (?, ?, ?, ?);",
                (PATH, doc_id, data, 1000),
            )
            await conn.execute(
                "INSERT INTO revisions(path, rev) VALUES (?, 1) "
                "ON CONFLICT(path) DO UPDATE SET rev = rev + 1;",
                (PATH,),
            )
            await conn.commit()

    async def test_unreadable_document_is_skipped(self):
        store = self.ctx.store
        good = await store.create(PATH, {"name": "good"})
        snapshots = []
        sub = self.ctx.subscribe(PATH, snapshots.append)
        await self.wait_for(lambda: snapshots)

        await self.put_raw("broken", "{not json")
        await store.create(PATH, {"name": "later"})
        await self.wait_for(lambda: len(snapshots[-1]) == 2)

        self.assertEqual([d["name"] for d in snapshots[-1]], ["good", "later"])
        self.assertEqual(snapshots[-1][0]["id"], good)
        self.assertTrue(sub.active)
        with self.assertRaises(StoreReadError):
            await store.get(PATH, "broken")
        with self.assertRaises(StoreWriteError):
            await store.update(PATH, "broken", {"name": "fixed"})

    async def test_failing_listener_keeps_subscription_alive(self):
        calls = []

        def listener(docs):
            calls.append(len(docs))
            if len(calls) == 1:
                raise RuntimeError("listener failed")

        sub = self.ctx.subscribe(PATH, listener)
        await self.wait_for(lambda: calls)
        await self.ctx.store.create(PATH, {"name": "a"})
        await self.wait_for(lambda: len(calls) >= 2)

        self.assertEqual(calls[-1], 1)
        self.assertTrue(sub.active)

    async def test_failing_error_listener_keeps_subscription_alive(self):
        store = FlakyStore(Database(self.config.db_path), poll_interval=0.05)
        errors = []

        def on_error(exc):
            errors.append(exc)
            raise RuntimeError("error listener failed")

        store.fail_reads = True
        sub = store.subscribe(PATH, lambda docs: None, on_error)
        await self.wait_for(lambda: len(errors) >= 2)
        self.assertTrue(sub.active)
        await store.close()
        self.assertFalse(sub.active)

    async def test_close_after_subscription_task_died(self):
        async def stopped():
            raise RuntimeError("stopped")

        sub = Subscription(self.ctx.store, PATH, lambda docs: None, None, 0.05)
        sub._task = asyncio.create_task(stopped())
        await asyncio.sleep(0)
        await sub.close()
        self.assertFalse(sub.active)

    async def test_context_close_finishes_when_a_subscription_fails_to_close(self):
        first = self.ctx.subscribe(PATH, lambda docs: None)
        second = self.ctx.subscribe("stores/test_store/other", lambda docs: None)
        real_close = first.close

        async def failing_close():
            await real_close()
            raise RuntimeError("close failed")

        first.close = failing_close
        with self.assertRaises(RuntimeError):
            await self.ctx.close()

        self.assertFalse(first.active)
        self.assertFalse(second.active)
        self.assertFalse(self.ctx.ready)

    # ---------- identity ----------

    async def test_store_refuses_before_sign_in(self):
        await self.ctx.close()
        with self.assertRaises(AuthError):
            self.ctx.store
        with self.assertRaises(AuthError):
            self.ctx.subscribe(PATH, lambda docs: None)

    async def test_token_identity_is_stable(self):
        service = IdentityService(Database(self.config.db_path))
        one = await service.sign_in_with_token("shared-token")
        two = await service.sign_in_with_token("shared-token")
        anon = await service.sign_in_anonymously()

        self.assertEqual(one.uid, two.uid)
        self.assertEqual(one.provider, "token")
        self.assertNotEqual(anon.uid, one.uid)
        with self.assertRaises(AuthError):
            await service.sign_in_with_token("")
