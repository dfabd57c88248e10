import asyncio
import os
import unittest

from support import ADMIN_SECRET, StoreTestCase

from shop.access import AccessGate
from shop.config import DEFAULT_STORE_ID, load_config
from shop.context import ClientContext, UnconfiguredContext, build_context
from shop.errors import AdminAuthError, ConfigurationError
from utils.state import GlobalState


class AccessGateTestCase(unittest.TestCase):
    def test_wrong_then_right_password(self):
        gate = AccessGate(ADMIN_SECRET)
        self.assertFalse(gate.check_admin_password("wrong"))
        self.assertFalse(gate.is_admin)
        with self.assertRaises(AdminAuthError):
            gate.require_admin()

        self.assertTrue(gate.check_admin_password(ADMIN_SECRET))
        self.assertTrue(gate.is_admin)
        gate.require_admin()

        # a later wrong attempt does not lock an unlocked gate
        self.assertFalse(gate.check_admin_password("wrong"))
        self.assertTrue(gate.is_admin)

        gate.lock()
        self.assertFalse(gate.is_admin)

    def test_no_secret_configured_never_unlocks(self):
        for secret in (None, ""):
            gate = AccessGate(secret)
            self.assertFalse(gate.check_admin_password(""))
            self.assertFalse(gate.check_admin_password("anything"))
            self.assertFalse(gate.is_admin)


class ConfigTestCase(unittest.TestCase):
    def test_defaults(self):
        config = load_config({"STOREFRONT_DB_PATH": "/tmp/store.sqlite"})
        self.assertEqual(config.db_path, "/tmp/store.sqlite")
        self.assertEqual(config.store_id, DEFAULT_STORE_ID)
        self.assertIsNone(config.admin_password)
        self.assertIsNone(config.auth_token)
        self.assertEqual(config.currency, "AFN")
        self.assertEqual(config.poll_interval, 1.0)

    def test_overrides(self):
        config = load_config(
            {
                "STOREFRONT_DB_PATH": "store.sqlite",
                "STOREFRONT_STORE_ID": "glow_shop",
                "STOREFRONT_ADMIN_PASSWORD": "pw",
                "STOREFRONT_CURRENCY": "USD",
                "STOREFRONT_POLL_INTERVAL": "0.25",
            }
        )
        self.assertEqual(config.store_id, "glow_shop")
        self.assertEqual(config.admin_password, "pw")
        self.assertEqual(config.currency, "USD")
        self.assertEqual(config.poll_interval, 0.25)

    def test_missing_and_malformed(self):
        with self.assertRaises(ConfigurationError) as cm:
            load_config({"STOREFRONT_DB_PATH": "   ", "STOREFRONT_POLL_INTERVAL": "soon"})
        self.assertEqual(
            cm.exception.missing, ["STOREFRONT_DB_PATH", "STOREFRONT_POLL_INTERVAL"]
        )

        with self.assertRaises(ConfigurationError) as cm:
            load_config({"STOREFRONT_DB_PATH": "x", "STOREFRONT_POLL_INTERVAL": "0"})
        self.assertEqual(cm.exception.missing, ["STOREFRONT_POLL_INTERVAL"])

    def test_build_context_unconfigured_variant(self):
        ctx = build_context({})
        self.assertIsInstance(ctx, UnconfiguredContext)
        self.assertFalse(ctx.configured)
        self.assertEqual(ctx.missing, ["STOREFRONT_DB_PATH"])

        ctx = build_context({"STOREFRONT_DB_PATH": os.path.join("data", "x.sqlite")})
        self.assertIsInstance(ctx, ClientContext)
        self.assertFalse(ctx.ready)


class GlobalStateTestCase(StoreTestCase):
    async def wait_for(self, predicate, timeout=2.0):
        async def _poll():
            while not predicate():
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_poll(), timeout)

    async def test_session_and_admin_subscriptions(self):
        state = GlobalState(ClientContext(self.config))
        self.assertTrue(await state.start_session())
        await self.wait_for(lambda: not state.products.loading)
        self.assertEqual(state.products.items, ())

        self.assertFalse(state.unlock_admin("wrong"))
        self.assertTrue(state.orders.loading)

        self.assertTrue(state.unlock_admin(ADMIN_SECRET))
        await self.wait_for(lambda: not state.orders.loading)

        await state.lock_admin()
        self.assertFalse(state.gate.is_admin)
        self.assertTrue(state.orders.loading)
        await state.end_session()
        self.assertFalse(state.ready)

    async def test_unconfigured_state_never_signs_in(self):
        state = GlobalState(UnconfiguredContext(ConfigurationError(["STOREFRONT_DB_PATH"])))
        self.assertFalse(state.configured)
        self.assertFalse(await state.start_session())
        self.assertFalse(state.unlock_admin(ADMIN_SECRET))
