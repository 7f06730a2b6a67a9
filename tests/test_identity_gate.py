#!/usr/bin/env python3
"""Identity gate: one phone, one PIN per project."""
import unittest
from unittest import mock

from sqlalchemy.orm import sessionmaker

from orderchat.agents.identity_agent import IdentityGate, IdentityStatus
from orderchat.app.config import Config
from orderchat.data.customer_store import CustomerStore, normalize_phone
from orderchat.data.database import create_tables, make_engine
from orderchat.data.models import Customer
from orderchat.utils.security import PinHasher


class TestIdentityGate(unittest.TestCase):

    def setUp(self):
        self.engine = make_engine("sqlite://")
        create_tables(bind=self.engine)
        self.db = sessionmaker(bind=self.engine, autoflush=False)()
        self.gate = IdentityGate(CustomerStore(PinHasher(iterations=1000)))

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_new_phone_creates_customer(self):
        result = self.gate.resolve(self.db, "burek01", "+385 60 000 0001", "1234", "Ana")
        self.db.commit()
        self.assertEqual(result.status, IdentityStatus.ok)
        self.assertTrue(result.created)
        customer = self.db.query(Customer).one()
        self.assertEqual(customer.phone, "+38560000001")
        self.assertEqual(customer.categories, [])
        self.assertNotEqual(customer.pin_hash, "1234")

    def test_matching_pin_refreshes_name_only(self):
        self.gate.resolve(self.db, "burek01", "+38560000001", "1234", "Ana")
        customer = self.db.query(Customer).one()
        customer.categories = ["student"]
        self.db.commit()

        result = self.gate.resolve(self.db, "burek01", "+38560000001", "1234", "Ana Horvat")
        self.db.commit()
        self.assertTrue(result.ok)
        self.assertFalse(result.created)
        customer = self.db.query(Customer).one()
        self.assertEqual(customer.name, "Ana Horvat")
        self.assertEqual(customer.categories, ["student"])

    def test_wrong_pin_is_rejected_without_writes(self):
        self.gate.resolve(self.db, "burek01", "+38560000001", "1234", "Ana")
        self.db.commit()
        result = self.gate.resolve(self.db, "burek01", "+38560000001", "9999", "Mallory")
        self.assertEqual(result.status, IdentityStatus.wrong_pin)
        self.assertIsNone(result.customer)
        self.db.rollback()
        self.assertEqual(self.db.query(Customer).one().name, "Ana")

    def test_missing_credentials(self):
        self.assertEqual(self.gate.resolve(self.db, "burek01", None, "1234").status, IdentityStatus.no_phone)
        self.assertEqual(self.gate.resolve(self.db, "burek01", "abc", "1234").status, IdentityStatus.no_phone)
        self.assertEqual(self.gate.resolve(self.db, "burek01", "+38560000001", " ").status, IdentityStatus.no_pin)
        self.assertEqual(self.db.query(Customer).count(), 0)

    def test_same_phone_in_other_project_is_a_different_identity(self):
        self.gate.resolve(self.db, "burek01", "+38560000001", "1234")
        self.db.commit()
        result = self.gate.resolve(self.db, "burek02", "+38560000001", "5555")
        self.db.commit()
        self.assertTrue(result.created)
        self.assertEqual(self.db.query(Customer).count(), 2)

    def test_phone_formats_map_to_one_customer(self):
        self.gate.resolve(self.db, "burek01", "00385 60 000 0001", "1234")
        self.db.commit()
        result = self.gate.resolve(self.db, "burek01", "+385-60-000-0001", "1234")
        self.assertFalse(result.created)
        self.assertEqual(self.db.query(Customer).count(), 1)


class TestNormalizePhone(unittest.TestCase):

    def test_normalization(self):
        self.assertEqual(normalize_phone("+385 (60) 000-0001"), "+38560000001")
        self.assertEqual(normalize_phone("0038560000001"), "+38560000001")
        self.assertEqual(normalize_phone("060 000 0001"), "0600000001")
        self.assertEqual(normalize_phone(38560000001), "38560000001")
        self.assertIsNone(normalize_phone(""))


class TestPinHasher(unittest.TestCase):

    def test_hash_and_verify(self):
        hasher = PinHasher(iterations=1000)
        stored = hasher.hash_pin("1234")
        self.assertTrue(stored.startswith("pbkdf2_sha256$1000$"))
        self.assertTrue(hasher.verify_pin("1234", stored))
        self.assertFalse(hasher.verify_pin("4321", stored))
        self.assertFalse(hasher.verify_pin("1234", "garbage"))
        self.assertNotEqual(stored, hasher.hash_pin("1234"))

    def test_iterations_come_from_config(self):
        with mock.patch.object(Config, "PIN_HASH_ITERATIONS", 2000):
            hasher = PinHasher()
            stored = CustomerStore().hasher.hash_pin("1234")
        self.assertEqual(hasher.iterations, 2000)
        self.assertTrue(stored.startswith("pbkdf2_sha256$2000$"))
        # hashes made with another count still verify
        self.assertTrue(hasher.verify_pin("1234", PinHasher(iterations=1000).hash_pin("1234")))


if __name__ == "__main__":
    unittest.main()
