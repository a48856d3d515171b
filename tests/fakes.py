"""
In-memory stand-ins for the remote store and the output sinks.
"""

from smartinventory.exceptions import RemoteStoreError


class MemorySink:
    """Collects saved documents in a dict keyed by filename."""

    def __init__(self):
        self.saved = {}

    def save(self, data, filename):
        self.saved[filename] = data
        return f"memory://{filename}"


class FakeStore:
    """
    Records every insert. Bulk inserts (more than one row) can be made to
    fail with a given error, single-row inserts keep working.
    """

    def __init__(self, remote_rows=None, bulk_error=None, error=None):
        self.inserted = []  # (table, rows)
        self.selects = []
        self.remote_rows = remote_rows or {}
        self.bulk_error = bulk_error
        self.error = error

    def insert(self, table_name, records):
        if self.error is not None:
            raise self.error
        if self.bulk_error is not None and len(records) > 1:
            raise self.bulk_error
        self.inserted.append((table_name, list(records)))
        return [dict(r, id=f"{table_name}-{i}") for i, r in enumerate(records)]

    def select(self, table_name, **query):
        self.selects.append((table_name, query))
        if self.error is not None:
            raise self.error
        return list(self.remote_rows.get(table_name, []))

    def update(self, table_name, row_id, patch):
        if self.error is not None:
            raise self.error
        return dict(patch, id=row_id)

    def delete(self, table_name, row_id):
        if self.error is not None:
            raise self.error

    def rows(self, table_name):
        return [row for table, batch in self.inserted if table == table_name for row in batch]


def constraint_error(table="products"):
    return RemoteStoreError("duplicate key value violates unique constraint", code="23505", table=table)
