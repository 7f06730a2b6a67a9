#!/usr/bin/env python3
"""HTTP surface: widget config, chat endpoint and staff admin."""
import base64
import json
import unittest
from unittest import mock

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from orderchat.agents.identity_agent import IdentityGate
from orderchat.agents.order_agent import OrderAgent
from orderchat.app.config import Config
from orderchat.app.controller import Controller
from orderchat.app.locking import OrderLockManager
from orderchat.app.main import app, get_controller
from orderchat.data.customer_store import CustomerStore
from orderchat.data.database import create_tables, get_db, make_engine
from orderchat.utils.security import PinHasher


def basic(user, password):
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


ADMIN = basic("admin", "s3cret")


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = make_engine("sqlite://")
        create_tables(bind=self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False)

        def override_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.gen = mock.Mock()
        self.controller = Controller(
            gen_client=self.gen,
            order_agent=OrderAgent(
                gate=IdentityGate(CustomerStore(PinHasher(iterations=1000))),
                locks=OrderLockManager(use_redis=False),
            ),
        )
        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[get_controller] = lambda: self.controller
        self.admin_patch = mock.patch.multiple(Config, ADMIN_USER="admin", ADMIN_PASSWORD="s3cret")
        self.admin_patch.start()
        self.client = TestClient(app)

    def tearDown(self):
        self.admin_patch.stop()
        app.dependency_overrides.clear()
        self.engine.dispose()


class TestPublicEndpoints(ApiTestCase):

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "healthy"})

    def test_config_serves_fallback_catalog_in_requested_language(self):
        res = self.client.get("/config", params={"project": "burek01", "lang": "de-AT"})
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual(body["lang"], "de")
        self.assertIn("Bäckerei", body["title"])
        names = {p["sku"]: p["name"] for p in body["products"]}
        self.assertEqual(names["burek_sir"], "Burek mit Käse")

    def test_config_advertises_only_running_discounts(self):
        expired = {"sku": "burek_sir", "base_price": "5.00", "is_discount_active": True,
                   "discount_type": "fixed", "discount_value": "1.00", "discount_name": "Jutarnji",
                   "discount_ends_at": "2000-01-01T00:00:00"}
        students = {"sku": "burek_meso", "base_price": "5.00", "is_discount_active": True,
                    "discount_type": "percentage", "discount_value": 20, "discount_name": "Studenti",
                    "allowed_categories": ["student"]}
        for payload in (expired, students):
            self.client.post("/admin/products", params={"project": "burek01"}, json=payload, headers=ADMIN)

        products = {p["sku"]: p for p in self.client.get("/config", params={"project": "burek01"}).json()["products"]}
        self.assertFalse(products["burek_sir"]["has_discount"])
        self.assertIsNone(products["burek_sir"]["discount_name"])
        self.assertEqual(products["burek_sir"]["final_price"], 5.0)
        self.assertTrue(products["burek_meso"]["has_discount"])
        self.assertEqual(products["burek_meso"]["discount_categories"], ["student"])
        # public price stays at base for a category-limited discount
        self.assertEqual(products["burek_meso"]["final_price"], 5.0)

    def test_chat_strips_block_and_confirms(self):
        block = {"phone": "+38560000001", "pin": "1234", "name": "Ana", "pickup_time": "08:30",
                 "items": {"burek_sir": 2}, "total": 10}
        self.gen.complete.return_value = f"Thanks Ana!\n{Config.ORDER_MARKER} {json.dumps(block)}"
        res = self.client.post("/chat", json={
            "projectId": "burek01",
            "lang": "en",
            "messages": [{"role": "user", "content": "Yes, confirm please"}],
        })
        self.assertEqual(res.status_code, 200)
        reply = res.json()["reply"]
        self.assertTrue(reply.startswith("Thanks Ana!"))
        self.assertNotIn(Config.ORDER_MARKER, reply)
        self.assertNotIn("1234", reply)
        self.assertIn("10.00 EUR", reply)

        orders = self.client.get("/admin/orders", params={"project": "burek01"}, headers=ADMIN).json()["orders"]
        self.assertEqual(len(orders), 1)
        self.assertEqual(orders[0]["user_phone"], "+38560000001")
        self.assertEqual(orders[0]["total"], 10.0)

    def test_chat_unexpected_error_is_generic(self):
        self.gen.complete.side_effect = RuntimeError("boom")
        res = self.client.post("/chat", json={"lang": "en", "messages": [{"role": "user", "content": "hi"}]})
        self.assertEqual(res.status_code, 500)
        self.assertNotIn("boom", res.text)
        self.assertIn("try again", res.json()["reply"])


class TestAdminAuth(ApiTestCase):

    def test_credentials_required(self):
        self.assertEqual(self.client.get("/admin/orders").status_code, 401)
        self.assertEqual(self.client.get("/admin/orders", headers=basic("admin", "nope")).status_code, 401)
        self.assertEqual(self.client.get("/admin/orders", headers=ADMIN).status_code, 200)

    def test_disabled_without_password(self):
        with mock.patch.object(Config, "ADMIN_PASSWORD", None):
            self.assertEqual(self.client.get("/admin/orders", headers=ADMIN).status_code, 503)


class TestAdminCatalogAndCustomers(ApiTestCase):

    def test_product_upsert_by_sku_and_category_string(self):
        payload = {"sku": "burek_sir", "name_hr": "Burek sa sirom", "base_price": "5.00",
                   "is_discount_active": True, "discount_type": "percent", "discount_value": 20,
                   "discount_name": "Studenti", "allowed_categories": "student, , senior ,student"}
        res = self.client.post("/admin/products", params={"project": "burek01"}, json=payload, headers=ADMIN)
        self.assertEqual(res.status_code, 200, res.text)
        created = res.json()
        self.assertEqual(created["allowed_categories"], ["student", "senior"])
        self.assertEqual(created["discount_type"], "percentage")

        payload["base_price"] = "5.50"
        updated = self.client.post("/admin/products", params={"project": "burek01"}, json=payload, headers=ADMIN).json()
        self.assertEqual(updated["id"], created["id"])
        self.assertEqual(updated["base_price"], 5.5)

        listed = self.client.get("/admin/products", params={"project": "burek01"}, headers=ADMIN).json()
        self.assertEqual(len(listed), 1)
        self.assertEqual(self.client.get("/admin/products", params={"project": "other"}, headers=ADMIN).json(), [])

    def test_negative_price_is_rejected(self):
        res = self.client.post("/admin/products", json={"sku": "x", "base_price": -1}, headers=ADMIN)
        self.assertEqual(res.status_code, 422)

    def test_product_update_and_delete(self):
        pid = self.client.post("/admin/products", json={"sku": "burek_meso", "base_price": 5}, headers=ADMIN).json()["id"]
        res = self.client.put(f"/admin/products/{pid}", json={"is_active": False, "allowed_categories": ["vip"]},
                              headers=ADMIN)
        self.assertEqual(res.json()["is_active"], False)
        self.assertEqual(res.json()["allowed_categories"], ["vip"])
        res = self.client.delete(f"/admin/products/{pid}", headers=ADMIN)
        self.assertEqual(res.json(), {"id": pid, "deleted": True, "deactivated": False})
        self.assertEqual(self.client.delete(f"/admin/products/{pid}", headers=ADMIN).status_code, 404)

    def test_customer_upsert_by_phone_hides_pin(self):
        res = self.client.post("/admin/customers", json={"phone": "+385 60 000 0001", "pin": "1234",
                                                         "name": "Ana", "categories": "student;vip"},
                               headers=ADMIN)
        self.assertEqual(res.status_code, 200, res.text)
        body = res.json()
        self.assertEqual(body["phone"], "+38560000001")
        self.assertEqual(body["categories"], ["student", "vip"])
        self.assertNotIn("pin", body)
        self.assertNotIn("pin_hash", body)

        again = self.client.post("/admin/customers", json={"phone": "+38560000001", "name": "Ana H."},
                                 headers=ADMIN).json()
        self.assertEqual(again["id"], body["id"])
        self.assertEqual(again["categories"], ["student", "vip"])

    def test_new_customer_needs_pin(self):
        res = self.client.post("/admin/customers", json={"phone": "+38560000002"}, headers=ADMIN)
        self.assertEqual(res.status_code, 400)


class TestAdminOrderTransitions(ApiTestCase):

    def place_order(self, items):
        block = {"phone": "+38560000001", "pin": "1234", "name": "Ana", "pickup_time": "08:30", "items": items}
        self.gen.complete.return_value = f"Ok.\n{Config.ORDER_MARKER} {json.dumps(block)}"
        self.client.post("/chat", json={"projectId": "burek01", "lang": "hr",
                                        "messages": [{"role": "user", "content": "Potvrđujem"}]})

    def test_delivered_and_cancel(self):
        self.place_order({"burek_sir": 1})
        order_id = self.client.get("/admin/orders", headers=ADMIN).json()["orders"][0]["id"]

        first = self.client.post(f"/admin/orders/{order_id}/delivered", headers=ADMIN)
        second = self.client.post(f"/admin/orders/{order_id}/delivered", headers=ADMIN)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 200)
        self.assertTrue(second.json()["is_delivered"])

        self.assertEqual(self.client.post(f"/admin/orders/{order_id}/cancel", headers=ADMIN).status_code, 409)
        self.assertEqual(self.client.post("/admin/orders/999/cancel", headers=ADMIN).status_code, 404)

        self.assertEqual(self.client.get("/admin/orders", params={"status": "open"}, headers=ADMIN).json()["orders"], [])
        all_orders = self.client.get("/admin/orders", params={"status": "all", "date": "today"}, headers=ADMIN).json()
        self.assertEqual(len(all_orders["orders"]), 1)
        self.assertEqual(self.client.get("/admin/orders", params={"status": "draft"}, headers=ADMIN).status_code, 422)

    def test_product_referenced_by_orders_is_only_deactivated(self):
        pid = self.client.post("/admin/products", params={"project": "burek01"},
                               json={"sku": "burek_sir", "base_price": 5}, headers=ADMIN).json()["id"]
        self.place_order({"burek_sir": 1})
        res = self.client.delete(f"/admin/products/{pid}", params={"project": "burek01"}, headers=ADMIN)
        self.assertEqual(res.json(), {"id": pid, "deleted": False, "deactivated": True})


if __name__ == "__main__":
    unittest.main()
