import os
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db.models import Product  # noqa: E402
from shop.config import Config  # noqa: E402
from shop.context import ClientContext  # noqa: E402

ADMIN_SECRET = "s3cret"


def make_product(pid="p1", price=100.0, stock=5, name=None, **extra) -> Product:
    return Product(
        id=pid,
        name=name or f"Product {pid}",
        price=price,
        category=extra.get("category", "Skincare"),
        description=extra.get("description", ""),
        image=extra.get("image", "https://example.com/p.jpg"),
        stock=stock,
    )


async def confirm_yes() -> bool:
    return True


async def confirm_no() -> bool:
    return False


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Signed-in client context over a throwaway store file."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config = Config(
            db_path=os.path.join(self.temp_dir.name, "store.sqlite"),
            store_id="test_store",
            admin_password=ADMIN_SECRET,
            poll_interval=0.05,
        )
        self.ctx = ClientContext(self.config)

    async def asyncSetUp(self):
        await self.ctx.start()

    async def asyncTearDown(self):
        await self.ctx.close()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def fetch_products(self):
        docs = await self.ctx.store.get_all(self.ctx.products_path)
        return [Product.from_doc(d) for d in docs]

    async def fetch_product(self, product_id):
        return Product.from_doc(
            await self.ctx.store.get(self.ctx.products_path, product_id)
        )
