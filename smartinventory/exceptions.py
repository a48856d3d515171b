# smartinventory/exceptions.py

from typing import Optional


class SmartInventoryError(Exception):
    """Base exception for the SmartInventory core."""
    pass


class ValidationError(SmartInventoryError):
    """Raised when an invoice is not fit for layout (no items, no customer)."""
    pass


class RemoteStoreError(SmartInventoryError):
    """
    A CRUD call against the remote store failed.

    `code` carries the Postgres SQLSTATE (or PostgREST code) when the store
    returned one. Class 23 codes are integrity constraint violations.
    """

    def __init__(self, message: str, code: Optional[str] = None, table: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.table = table

    @property
    def is_constraint_violation(self) -> bool:
        return bool(self.code) and str(self.code).startswith("23")

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code {self.code})"
        return self.message


class ExportIOError(SmartInventoryError):
    """Raised when a document cannot be serialised or saved."""
    pass


class MigrationError(SmartInventoryError):
    """Wraps any failure met while running the migration sequence."""
    pass
