import os
import tempfile
import unittest

from uthmhub.services.storage import Storage, StorageError


class StorageTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = Storage(os.path.join(self.tmp.name, "data", "test.db"))

    def tearDown(self):
        self.store.close()
        self.tmp.cleanup()

    def test_missing_key_returns_default(self):
        self.assertIsNone(self.store.get_json("semesters"))
        self.assertEqual(self.store.get_json("semesters", []), [])

    def test_set_get_and_overwrite(self):
        self.store.set_json("nickname", "Aina")
        self.assertEqual(self.store.get_json("nickname"), "Aina")
        self.store.set_json("nickname", {"name": "Aina", "faculty": "FSKTM"})
        self.assertEqual(self.store.get_json("nickname"), {"name": "Aina", "faculty": "FSKTM"})

    def test_delete_and_keys(self):
        self.store.set_json("b", 1)
        self.store.set_json("a", 2)
        self.assertEqual(self.store.keys(), ["a", "b"])
        self.store.delete("a")
        self.assertEqual(self.store.keys(), ["b"])

    def test_malformed_value_is_treated_as_missing(self):
        self.store.conn.execute(
            "INSERT INTO kv(key, value, updated_at) VALUES(?, ?, ?)",
            ("broken", "{not json", "2026-10-18T00:00:00+00:00"),
        )
        self.store.conn.commit()
        self.assertEqual(self.store.get_json("broken", []), [])

    def test_unserializable_value(self):
        with self.assertRaises(StorageError):
            self.store.set_json("bad", {1, 2, 3})

    def test_values_survive_reopen(self):
        self.store.set_json("semesters", [{"id": "x"}])
        self.store.close()
        self.store = Storage(self.store.db_path)
        self.assertEqual(self.store.get_json("semesters"), [{"id": "x"}])


if __name__ == "__main__":
    unittest.main()
