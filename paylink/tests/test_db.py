import unittest

from paylink.db import (
    ClientChanges,
    ClientRecord,
    DuplicateBaseUrlError,
    InMemoryClientStore,
    SqlClientStore,
)
from paylink.hashing import hash_secret


class ClientStoreContract:
    """Behavior shared by every ClientStore implementation."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()
        self.secret_hash = hash_secret("s3cr3t")
        self.store.create_client(
            ClientRecord(
                base_url="https://shop.example",
                secret_hash=self.secret_hash,
                upi_id="shop@upi",
            )
        )

    def test_create_and_get(self):
        record = self.store.get_client("https://shop.example")
        self.assertIsNotNone(record)
        self.assertEqual(record.upi_id, "shop@upi")
        self.assertEqual(record.qr_image_path, "")
        self.assertEqual(record.secret_hash, self.secret_hash)
        self.assertIsNone(self.store.get_client("https://other.example"))

    def test_duplicate_base_url_is_rejected(self):
        with self.assertRaises(DuplicateBaseUrlError):
            self.store.create_client(
                ClientRecord(
                    base_url="https://shop.example",
                    secret_hash=hash_secret("other"),
                )
            )
        record = self.store.get_client("https://shop.example")
        self.assertEqual(record.secret_hash, self.secret_hash)

    def test_update_with_wrong_hash_changes_nothing(self):
        before = self.store.get_client("https://shop.example")
        result = self.store.update_client(
            "https://shop.example",
            hash_secret("wrong"),
            ClientChanges(upi_id="thief@upi"),
        )
        self.assertIsNone(result)
        self.assertEqual(self.store.get_client("https://shop.example"), before)

    def test_update_missing_client(self):
        result = self.store.update_client(
            "https://missing.example", self.secret_hash, ClientChanges(upi_id="x")
        )
        self.assertIsNone(result)

    def test_update_applies_only_supplied_fields(self):
        result = self.store.update_client(
            "https://shop.example",
            self.secret_hash,
            ClientChanges(qr_image_path="/uploads/new.png"),
        )
        self.assertIsNotNone(result)
        self.assertEqual(result.previous.qr_image_path, "")
        self.assertEqual(result.current.qr_image_path, "/uploads/new.png")
        self.assertEqual(result.current.upi_id, "shop@upi")
        self.assertEqual(result.current.secret_hash, self.secret_hash)
        self.assertGreaterEqual(result.current.updated_at, result.previous.updated_at)
        self.assertEqual(
            self.store.get_client("https://shop.example").qr_image_path,
            "/uploads/new.png",
        )

    def test_update_rotates_secret(self):
        new_hash = hash_secret("n3w")
        self.store.update_client(
            "https://shop.example", self.secret_hash, ClientChanges(secret_hash=new_hash)
        )
        self.assertIsNone(
            self.store.update_client(
                "https://shop.example", self.secret_hash, ClientChanges(upi_id="x")
            )
        )
        self.assertIsNotNone(
            self.store.update_client(
                "https://shop.example", new_hash, ClientChanges(upi_id="x")
            )
        )

    def test_returned_records_are_copies(self):
        record = self.store.get_client("https://shop.example")
        record.upi_id = "mutated@upi"
        self.assertEqual(
            self.store.get_client("https://shop.example").upi_id, "shop@upi"
        )


class InMemoryClientStoreTests(ClientStoreContract, unittest.TestCase):
    def make_store(self):
        return InMemoryClientStore()

    def test_reset(self):
        self.store.reset()
        self.assertIsNone(self.store.get_client("https://shop.example"))


class SqlClientStoreTests(ClientStoreContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store logic.
    """

    def make_store(self):
        return SqlClientStore("sqlite+pysqlite:///:memory:")

    def tearDown(self):
        self.store.engine.dispose()

    def test_requires_database_url(self):
        with self.assertRaises(ValueError):
            SqlClientStore("")


if __name__ == "__main__":
    unittest.main()
