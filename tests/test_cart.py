import json
import os
import tempfile
import unittest

from db.models import OrderRequestItem, Product
from utils.cart import CART_KEY, Cart, FileStorage, MemoryStorage

TEE = Product(1, "Classic Tee", None, 59900, "images/shirt.jpg", 25)
HOODIE = Product(2, "Comfy Hoodie", None, 199900, "images/hoodie.jpg", 15)


class CartTest(unittest.TestCase):
    def setUp(self):
        self.storage = MemoryStorage()
        self.cart = Cart(self.storage)

    def test_empty_cart(self):
        self.assertEqual(self.cart.items(), [])
        self.assertEqual(self.cart.count(), 0)
        self.assertEqual(self.cart.subtotal(), 0)
        self.assertEqual(self.cart.to_order_items(), [])

    def test_add_same_product_merges_quantity(self):
        self.cart.add(TEE, 2)
        self.cart.add(TEE, 3)
        items = self.cart.items()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].product_id, 1)
        self.assertEqual(items[0].quantity, 5)

    def test_add_keeps_insertion_order_and_caches_details(self):
        self.cart.add(HOODIE)
        self.cart.add(TEE, 2)
        items = self.cart.items()
        self.assertEqual([i.product_id for i in items], [2, 1])
        self.assertEqual(items[0].title, "Comfy Hoodie")
        self.assertEqual(items[0].price, 199900)
        self.assertEqual(items[0].quantity, 1)

    def test_add_rejects_non_positive_quantity(self):
        with self.assertRaises(ValueError):
            self.cart.add(TEE, 0)
        with self.assertRaises(ValueError):
            self.cart.add(TEE, -1)
        self.assertEqual(self.cart.items(), [])

    def test_set_quantity(self):
        self.cart.add(TEE, 2)
        self.assertTrue(self.cart.set_quantity(1, 7))
        self.assertEqual(self.cart.get(1).quantity, 7)
        # clamped to one, like the quantity input
        self.assertTrue(self.cart.set_quantity(1, 0))
        self.assertEqual(self.cart.get(1).quantity, 1)
        self.assertFalse(self.cart.set_quantity(99, 3))
        self.assertIsNone(self.cart.get(99))

    def test_remove_and_clear(self):
        self.cart.add(TEE, 1)
        self.cart.add(HOODIE, 1)
        self.cart.remove(1)
        self.assertEqual([i.product_id for i in self.cart.items()], [2])
        self.cart.remove(12345)  # unknown ids are ignored
        self.assertEqual(len(self.cart.items()), 1)
        self.cart.clear()
        self.assertEqual(self.cart.items(), [])

    def test_count_and_subtotal(self):
        self.cart.add(TEE, 2)
        self.cart.add(HOODIE, 1)
        self.assertEqual(self.cart.count(), 3)
        self.assertEqual(self.cart.subtotal(), 59900 * 2 + 199900)
        # live prices win over cached ones, missing ones fall back
        self.assertEqual(self.cart.subtotal({1: 50000}), 50000 * 2 + 199900)

    def test_to_order_items(self):
        self.cart.add(TEE, 2)
        self.cart.add(HOODIE, 4)
        self.assertEqual(
            self.cart.to_order_items(),
            [OrderRequestItem(1, 2), OrderRequestItem(2, 4)],
        )

    def test_whole_list_stored_under_one_key(self):
        self.cart.add(TEE, 2)
        raw = self.storage.get(CART_KEY)
        self.assertEqual(
            json.loads(raw),
            [{"product_id": 1, "title": "Classic Tee", "price": 59900, "quantity": 2}],
        )

    def test_custom_key_isolates_carts(self):
        other = Cart(self.storage, key="other_cart")
        self.cart.add(TEE, 1)
        self.assertEqual(other.items(), [])


class FileStorageTest(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "nested", "cart.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_cart_survives_new_instances(self):
        Cart(FileStorage(self.path)).add(TEE, 3)
        reopened = Cart(FileStorage(self.path))
        self.assertEqual(reopened.count(), 3)
        self.assertEqual(reopened.items()[0].title, "Classic Tee")

    def test_missing_file_reads_as_empty(self):
        storage = FileStorage(self.path)
        self.assertIsNone(storage.get(CART_KEY))
        self.assertEqual(Cart(storage).items(), [])

    def test_other_keys_are_preserved(self):
        storage = FileStorage(self.path)
        storage.set("theme", "dark")
        Cart(storage).add(HOODIE)
        self.assertEqual(storage.get("theme"), "dark")

    def test_corrupt_file_reads_as_empty_and_is_rewritten(self):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")
        cart = Cart(FileStorage(self.path))
        self.assertEqual(cart.items(), [])
        self.assertEqual(cart.count(), 0)
        cart.add(TEE, 2)
        self.assertEqual(Cart(FileStorage(self.path)).count(), 2)

    def test_non_object_file_reads_as_empty(self):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("[1, 2, 3]")
        self.assertEqual(Cart(FileStorage(self.path)).items(), [])


class CorruptCartValueTest(unittest.TestCase):
    def test_garbled_stored_list_reads_as_empty(self):
        storage = MemoryStorage()
        storage.set(CART_KEY, "[{\"product_id\": 1}")
        cart = Cart(storage)
        self.assertEqual(cart.items(), [])
        cart.add(TEE, 1)
        self.assertEqual(cart.count(), 1)
