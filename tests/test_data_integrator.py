"""
Unit tests for the Supabase store boundary.
"""

import unittest
from unittest.mock import MagicMock, patch

from postgrest.exceptions import APIError

from smartinventory.config import Settings
from smartinventory.data_integrator import SupabaseStore, create_store
from smartinventory.exceptions import RemoteStoreError


def _api_error(code, message="request failed"):
    return APIError({"message": message, "code": code, "hint": None, "details": None})


class TestSupabaseStore(unittest.TestCase):
    """CRUD calls against a mocked client."""

    def setUp(self):
        self.client = MagicMock()
        self.table = self.client.table.return_value
        self.store = SupabaseStore(self.client)

    def test_select_builds_query(self):
        query = self.table.select.return_value
        query.eq.return_value = query
        query.order.return_value = query
        query.limit.return_value = query
        query.execute.return_value = MagicMock(data=[{"id": 1}], error=None)

        rows = self.store.select(
            "activities",
            filters={"type": "sale"},
            order=("created_at", False),
            columns="id, type",
            limit=50,
        )

        self.assertEqual(rows, [{"id": 1}])
        self.client.table.assert_called_with("activities")
        self.table.select.assert_called_with("id, type")
        query.eq.assert_called_with("type", "sale")
        query.order.assert_called_with("created_at", desc=True)
        query.limit.assert_called_with(50)

    def test_schema_is_used(self):
        schema_table = self.client.schema.return_value.table.return_value
        schema_table.insert.return_value.execute.return_value = MagicMock(data=[{"id": 1}], error=None)

        store = SupabaseStore(self.client, schema="inventory")
        self.assertEqual(store.insert("products", [{"name": "Cable"}]), [{"id": 1}])
        self.client.schema.assert_called_with("inventory")
        self.client.table.assert_not_called()

    def test_insert_nothing(self):
        self.assertEqual(self.store.insert("products", []), [])
        self.client.table.assert_not_called()

    def test_constraint_violation_mapped(self):
        self.table.insert.return_value.execute.side_effect = _api_error("23505", "duplicate key")

        with self.assertRaises(RemoteStoreError) as ctx:
            self.store.insert("products", [{"sku": "A"}])

        err = ctx.exception
        self.assertEqual(err.code, "23505")
        self.assertEqual(err.table, "products")
        self.assertTrue(err.is_constraint_violation)
        self.assertIn("duplicate key", str(err))

    def test_other_api_error_not_constraint(self):
        self.table.insert.return_value.execute.side_effect = _api_error("PGRST301")

        with self.assertRaises(RemoteStoreError) as ctx:
            self.store.insert("products", [{"sku": "A"}])
        self.assertFalse(ctx.exception.is_constraint_violation)

    def test_network_error_has_no_code(self):
        self.table.delete.return_value.eq.return_value.execute.side_effect = ConnectionError("offline")

        with self.assertRaises(RemoteStoreError) as ctx:
            self.store.delete("products", 7)
        self.assertIsNone(ctx.exception.code)
        self.assertFalse(ctx.exception.is_constraint_violation)

    def test_update_missing_row(self):
        self.table.update.return_value.eq.return_value.execute.return_value = MagicMock(data=[], error=None)

        with self.assertRaises(RemoteStoreError):
            self.store.update("products", 99, {"name": "Cable"})

    def test_update_returns_row(self):
        self.table.update.return_value.eq.return_value.execute.return_value = MagicMock(
            data=[{"id": 3, "name": "Cable"}], error=None
        )
        self.assertEqual(self.store.update("products", 3, {"name": "Cable"}), {"id": 3, "name": "Cable"})
        self.table.update.return_value.eq.assert_called_with("id", 3)


class TestCreateStore(unittest.TestCase):
    """Building the store from settings."""

    def test_missing_credentials(self):
        with self.assertRaises(RuntimeError):
            create_store(Settings(supabase_url=None, supabase_key="key"))

    @patch("smartinventory.data_integrator.create_client")
    def test_client_created(self, create_client):
        store = create_store(Settings(supabase_url="https://x.supabase.co", supabase_key="key", schema="public"))
        create_client.assert_called_once_with("https://x.supabase.co", "key")
        self.assertIs(store.client, create_client.return_value)
        self.assertEqual(store.schema, "public")


if __name__ == "__main__":
    unittest.main()
