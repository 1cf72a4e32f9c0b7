"""Tests for the storefront http api."""

import os
import tempfile
import unittest
from contextlib import asynccontextmanager

import aiosqlite
from fastapi.testclient import TestClient

from api.app import app
from db import crud
from db import database as db_database

CUSTOMER = {"name": "Asha Rao", "email": "asha@example.com", "address": "12 MG Road"}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self._orig_path = db_database.DB_PATH
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "api.sqlite")
        db_database._initialized = False
        self.client = TestClient(app)

    def tearDown(self):
        db_database.DB_PATH = self._orig_path
        db_database._initialized = False
        self.temp_dir.cleanup()

    def stock_of(self, product_id):
        return self.client.get(f"/products/{product_id}").json()["stock"]


class CatalogEndpointsTest(ApiTestCase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_list_products(self):
        response = self.client.get("/products")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data), 4)
        self.assertEqual(
            set(data[0]),
            {"id", "title", "description", "price", "image", "stock", "created_at"},
        )
        for product in data:
            self.assertIsInstance(product["price"], int)

    def test_get_product(self):
        response = self.client.get("/products/1")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["title"], "Classic Tee")
        self.assertEqual(data["price"], 59900)
        self.assertEqual(data["stock"], 25)

    def test_get_missing_product_is_404(self):
        response = self.client.get("/products/424242")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Product not found"})

    def test_get_oversized_product_id_is_404(self):
        response = self.client.get("/products/100000000000000000000")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Product not found"})


class OrderEndpointsTest(ApiTestCase):
    def test_place_order(self):
        response = self.client.post(
            "/orders",
            json={"items": [{"product_id": 1, "quantity": 3}], "customer": CUSTOMER},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["ok"])
        self.assertIsInstance(data["order_id"], int)
        self.assertEqual(data["total_amount"], 179700)
        self.assertEqual(data["total_readable"], "₹1797.00")
        self.assertEqual(self.stock_of(1), 22)

        orders = self.client.get("/orders").json()
        self.assertEqual(len(orders), 1)
        self.assertEqual(orders[0]["id"], data["order_id"])
        self.assertEqual(orders[0]["total_amount"], 179700)
        self.assertEqual(
            orders[0]["items"],
            [
                {
                    "id": orders[0]["items"][0]["id"],
                    "order_id": data["order_id"],
                    "product_id": 1,
                    "quantity": 3,
                    "price_each": 59900,
                }
            ],
        )

    def test_client_prices_are_ignored(self):
        response = self.client.post(
            "/orders",
            json={
                "items": [{"product_id": 2, "quantity": 1, "price": 1}],
                "customer": CUSTOMER,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total_amount"], 199900)

    def test_empty_cart_is_400(self):
        response = self.client.post("/orders", json={"items": [], "customer": CUSTOMER})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Cart is empty", response.json()["error"])
        self.assertEqual(self.client.get("/orders").json(), [])

    def test_missing_customer_is_400(self):
        response = self.client.post(
            "/orders",
            json={
                "items": [{"product_id": 1, "quantity": 1}],
                "customer": {"name": "Asha", "email": ""},
            },
        )
        self.assertEqual(response.status_code, 400)
        error = response.json()["error"]
        self.assertIn("Missing customer information", error)
        self.assertIn("address", error)

        response = self.client.post(
            "/orders", json={"items": [{"product_id": 1, "quantity": 1}]}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.stock_of(1), 25)

    def test_malformed_body_is_400(self):
        response = self.client.post(
            "/orders",
            json={"items": [{"product_id": 1, "quantity": 0}], "customer": CUSTOMER},
        )
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()["error"].startswith("Invalid request"))
        self.assertIn("quantity", response.json()["error"])

        response = self.client.post(
            "/orders",
            json={"items": [{"product_id": "abc", "quantity": 1}], "customer": CUSTOMER},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.stock_of(1), 25)

    def test_unknown_product_is_400(self):
        response = self.client.post(
            "/orders",
            json={
                "items": [
                    {"product_id": 1, "quantity": 1},
                    {"product_id": 777, "quantity": 1},
                ],
                "customer": CUSTOMER,
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("777", response.json()["error"])
        self.assertEqual(self.stock_of(1), 25)
        self.assertEqual(self.client.get("/orders").json(), [])

    def test_oversized_product_id_is_400(self):
        response = self.client.post(
            "/orders",
            json={"items": [{"product_id": 10**20, "quantity": 1}], "customer": CUSTOMER},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("100000000000000000000", response.json()["error"])
        self.assertEqual(self.client.get("/orders").json(), [])

    def test_insufficient_stock_is_400(self):
        response = self.client.post(
            "/orders",
            json={
                "items": [
                    {"product_id": 1, "quantity": 2},
                    {"product_id": 3, "quantity": 50},
                ],
                "customer": CUSTOMER,
            },
        )
        self.assertEqual(response.status_code, 400)
        error = response.json()["error"]
        self.assertIn("Denim Jacket", error)
        self.assertIn("50", error)
        self.assertEqual(self.stock_of(1), 25)
        self.assertEqual(self.stock_of(3), 10)

    def test_storage_failure_is_generic_500(self):
        @asynccontextmanager
        async def broken_transaction():
            raise aiosqlite.OperationalError("database disk image is malformed")
            yield  # pragma: no cover

        orig_transaction = crud.transaction
        try:
            crud.transaction = broken_transaction  # type: ignore
            response = self.client.post(
                "/orders",
                json={"items": [{"product_id": 1, "quantity": 1}], "customer": CUSTOMER},
            )
        finally:
            crud.transaction = orig_transaction  # restore
        self.assertEqual(response.status_code, 500)
        self.assertNotIn("malformed", response.json()["error"])

    def test_orders_listed_newest_first(self):
        ids = []
        for pid in (1, 2):
            response = self.client.post(
                "/orders",
                json={"items": [{"product_id": pid, "quantity": 1}], "customer": CUSTOMER},
            )
            ids.append(response.json()["order_id"])
        orders = self.client.get("/orders").json()
        self.assertEqual([o["id"] for o in orders], list(reversed(ids)))
