# smartinventory/data_integrator.py

import logging
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client, create_client

from smartinventory.config import Settings
from smartinventory.exceptions import RemoteStoreError

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> "SupabaseStore":
    """
    Build a SupabaseStore from settings. The client is created here and
    handed to whoever needs it; nothing is kept at module level.
    """
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError("Set SUPABASE_URL and SUPABASE_KEY in .env or environment variables")

    client = create_client(settings.supabase_url, settings.supabase_key)
    return SupabaseStore(client, schema=settings.schema)


class SupabaseStore:
    """
    Minimal CRUD boundary over a Supabase (PostgREST) client.

    Every failure is raised as RemoteStoreError carrying the SQLSTATE code
    when PostgREST reports one, so callers can branch on
    `is_constraint_violation` instead of reading the message.
    """

    def __init__(self, client: Client, schema: Optional[str] = None):
        self.client = client
        self.schema = schema

    def _table(self, table_name: str):
        if self.schema:
            return self.client.schema(self.schema).table(table_name)
        return self.client.table(table_name)

    def _execute(self, table_name: str, action: str, query) -> List[Dict[str, Any]]:
        try:
            resp = query.execute()
        except APIError as e:
            raise RemoteStoreError(
                f"{action} on {table_name} failed: {e.message}",
                code=e.code,
                table=table_name,
            ) from e
        except Exception as e:
            raise RemoteStoreError(f"{action} on {table_name} failed: {e}", table=table_name) from e

        if getattr(resp, "error", None):
            error = resp.error
            code = error.get("code") if isinstance(error, dict) else getattr(error, "code", None)
            raise RemoteStoreError(f"{action} on {table_name} failed: {error}", code=code, table=table_name)

        return resp.data or []

    def select(
            self,
            table_name: str,
            filters: Optional[Dict[str, Any]] = None,
            order: Optional[Tuple[str, bool]] = None,
            columns: str = "*",
            limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        `filters` are equality filters, `order` is (column, ascending).
        """
        query = self._table(table_name).select(columns)

        for col_name, val in (filters or {}).items():
            query = query.eq(col_name, val)

        if order is not None:
            col_name, ascending = order
            query = query.order(col_name, desc=not ascending)

        if limit is not None:
            query = query.limit(limit)

        return self._execute(table_name, "Select", query)

    def insert(self, table_name: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not records:
            return []

        rows = self._execute(table_name, "Insert", self._table(table_name).insert(records))
        logger.debug("Inserted %d rows into %s", len(records), table_name)
        return rows

    def update(self, table_name: str, row_id: Any, patch: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._execute(
            table_name,
            "Update",
            self._table(table_name).update(patch).eq("id", row_id),
        )
        if not rows:
            raise RemoteStoreError(f"Update on {table_name} failed: no row with id {row_id}", table=table_name)
        return rows[0]

    def delete(self, table_name: str, row_id: Any) -> None:
        self._execute(table_name, "Delete", self._table(table_name).delete().eq("id", row_id))
