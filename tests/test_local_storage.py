"""
Unit tests for the localStorage dump reader.
"""

import json
import os
import shutil
import tempfile
import unittest

from smartinventory.utils.local_storage import CUSTOMERS_KEY, PRODUCTS_KEY, LocalStorage


class TestLocalStorage(unittest.TestCase):
    """Reading and removing storage keys."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "localStorage.json")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, data):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        return LocalStorage(self.path)

    def test_missing_file_reads_empty(self):
        storage = LocalStorage(self.path)
        self.assertEqual(storage.read_all(PRODUCTS_KEY), [])
        self.assertIsNone(storage.read_raw(PRODUCTS_KEY))

    def test_json_string_values_decoded(self):
        storage = self._write({PRODUCTS_KEY: json.dumps([{"name": "Cable"}])})
        self.assertEqual(storage.read_all(PRODUCTS_KEY), [{"name": "Cable"}])

    def test_already_decoded_values(self):
        storage = self._write({CUSTOMERS_KEY: [{"name": "Asha"}]})
        self.assertEqual(storage.read_all(CUSTOMERS_KEY), [{"name": "Asha"}])

    def test_non_list_reads_empty(self):
        storage = self._write({PRODUCTS_KEY: json.dumps({"name": "Cable"}), "theme": "dark"})
        self.assertEqual(storage.read_all(PRODUCTS_KEY), [])
        self.assertEqual(storage.read_raw("theme"), "dark")

    def test_top_level_must_be_object(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("[]")
        with self.assertRaises(ValueError):
            LocalStorage(self.path).read_all(PRODUCTS_KEY)

    def test_remove(self):
        storage = self._write({PRODUCTS_KEY: "[]", CUSTOMERS_KEY: "[]", "theme": "dark"})
        storage.remove([PRODUCTS_KEY, "never_set"])

        with open(self.path, encoding="utf-8") as f:
            remaining = json.load(f)
        self.assertEqual(set(remaining), {CUSTOMERS_KEY, "theme"})

    def test_remove_missing_file(self):
        LocalStorage(self.path).remove([PRODUCTS_KEY])
        self.assertFalse(os.path.exists(self.path))


if __name__ == "__main__":
    unittest.main()
