import unittest

from support import make_product

from db.models import PLACEHOLDER_IMAGE, Order, Product
from shop.catalog import categories, filter_products
from shop.collection import CollectionView
from shop.errors import StoreReadError
from shop.orders import sort_orders
from utils.pure import format_money, generate_markdown_table


class CatalogHelpersTestCase(unittest.TestCase):
    def setUp(self):
        self.products = [
            make_product("1", name="Rose Serum", category="Skincare", description="vitamin C"),
            make_product("2", name="Lip Balm", category="Lips"),
            make_product("3", name="Night Cream", category="skincare ", description="rich"),
            make_product("4", name="Gift Card", category=""),
        ]

    def test_categories_distinct_sorted(self):
        self.assertEqual(categories(self.products), ["Lips", "Skincare"])

    def test_filter_by_query_and_category(self):
        ids = lambda ps: [p.id for p in ps]  # noqa: E731
        self.assertEqual(ids(filter_products(self.products)), ["1", "2", "3", "4"])
        self.assertEqual(ids(filter_products(self.products, "  SERUM ")), ["1"])
        self.assertEqual(ids(filter_products(self.products, "vitamin rose")), ["1"])
        self.assertEqual(ids(filter_products(self.products, category="skincare")), ["1", "3"])
        self.assertEqual(ids(filter_products(self.products, "cream", "Lips")), [])


class CollectionViewTestCase(unittest.TestCase):
    def test_snapshot_replaces_and_skips_malformed(self):
        view = CollectionView("products", Product.from_doc)
        seen = []
        view.listen(lambda v: seen.append(len(v)))
        self.assertTrue(view.loading)

        view.apply_snapshot([{"id": "a", "name": "A", "price": "5"}, {"name": "no id"}])
        self.assertFalse(view.loading)
        self.assertEqual([p.id for p in view.items], ["a"])
        self.assertEqual(view.get("a").price, 5.0)
        self.assertEqual(view.get("a").image, PLACEHOLDER_IMAGE)

        view.apply_snapshot([{"id": "b", "name": "B"}])
        self.assertIsNone(view.get("a"))
        self.assertEqual(seen, [1, 1])

    def test_error_keeps_items(self):
        view = CollectionView("orders", Order.from_doc, sort_orders)
        view.apply_snapshot(
            [
                {"id": "o1", "createdAt": "2025-01-01T00:00:00+00:00", "total": 10},
                {"id": "o2", "createdAt": "2025-02-01T00:00:00+00:00", "total": 20},
                {"id": "o3", "total": 30},
            ]
        )
        self.assertEqual([o.id for o in view], ["o2", "o1", "o3"])

        view.apply_error(StoreReadError("boom"))
        self.assertEqual(len(view), 3)
        self.assertIsNotNone(view.error)
        self.assertFalse(view.loading)

        view.reset()
        self.assertEqual(view.items, ())
        self.assertTrue(view.loading)


class PureHelpersTestCase(unittest.TestCase):
    def test_format_money(self):
        self.assertEqual(format_money(1300, "AFN"), "1,300 AFN")
        self.assertEqual(format_money(12.5, "AFN"), "12.50 AFN")

    def test_markdown_table_escapes_cells(self):
        md = generate_markdown_table(["Name", "Qty"], [["a|b", 2]], ["l", "r"])
        self.assertEqual(md.splitlines(), ["| Name | Qty |", "| :--- | ---: |", "| a\\|b | 2 |"])
        self.assertEqual(generate_markdown_table(["x"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["a", "b"], [[1, 2]], ["l"])
