# smartinventory/services/migration_service.py

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List

from smartinventory.domain.models import MigrationCounts, MigrationOutcome
from smartinventory.exceptions import MigrationError, RemoteStoreError
from smartinventory.utils.data_migrator import (
    BATCH_SIZE,
    build_customer_index,
    chunked,
    to_customer_row,
    to_order_row,
    to_product_row,
)
from smartinventory.utils.local_storage import (
    ACTIVITIES_KEY,
    CUSTOMERS_KEY,
    MIGRATED_KEYS,
    ORDERS_KEY,
    PRODUCTS_KEY,
    LocalStorage,
)

logger = logging.getLogger(__name__)


class MigrationJob:
    """
    One-off copy of locally stored products, customers and orders into the
    remote store.

    The sequence is: back up the local data, bulk insert everything, and if
    the store rejects the bulk insert with a constraint violation, retry
    once inserting record by record without relational links. Nothing is
    rolled back; running it again after a partial failure can duplicate
    rows.
    """

    def __init__(self, store, local_storage: LocalStorage, sink, batch_size: int = BATCH_SIZE):
        self.store = store
        self.local_storage = local_storage
        self.sink = sink
        self.batch_size = batch_size

    # ---------- public API ----------

    def run(self) -> MigrationOutcome:
        try:
            counts, message = self._run_steps()
        except MigrationError as e:
            logger.error("Migration failed: %s", e)
            return MigrationOutcome(
                succeeded=False,
                message=f"Migration failed: {e}",
                counts=MigrationCounts(),
            )

        logger.info(message)
        return MigrationOutcome(succeeded=True, message=message, counts=counts)

    def backup(self) -> str:
        """
        Save a JSON snapshot of the local data through the sink.
        Returns the sink location.
        """
        snapshot = {
            "products": self.local_storage.read_raw(PRODUCTS_KEY),
            "customers": self.local_storage.read_raw(CUSTOMERS_KEY),
            "orders": self.local_storage.read_raw(ORDERS_KEY),
            "activities": self.local_storage.read_raw(ACTIVITIES_KEY),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        data = json.dumps(snapshot, indent=2, ensure_ascii=False, default=str).encode("utf-8")
        location = self.sink.save(data, f"localStorage-backup-{date.today().isoformat()}.json")
        logger.info("Local data backed up to %s", location)
        return location

    def clear_local_data(self, confirm: bool = False) -> None:
        """
        Delete the migrated keys from local storage. Only runs when the user
        has explicitly confirmed.
        """
        if not confirm:
            raise ValueError("Clearing local data requires explicit confirmation")
        self.local_storage.remove(MIGRATED_KEYS)

    # ---------- steps ----------

    def _run_steps(self):
        try:
            products = self.local_storage.read_all(PRODUCTS_KEY)
            customers = self.local_storage.read_all(CUSTOMERS_KEY)
            orders = self.local_storage.read_all(ORDERS_KEY)

            self.backup()

            try:
                counts = self._migrate_primary(products, customers, orders)
                message = (
                    f"Migration completed successfully! Migrated {counts.products} products, "
                    f"{counts.customers} customers, and {counts.orders} orders."
                )
            except RemoteStoreError as e:
                if not e.is_constraint_violation:
                    raise
                logger.warning("Bulk insert rejected (%s), falling back to simple migration", e)
                counts = self._migrate_simple(products, customers, orders)
                message = (
                    f"Migration completed! Successfully migrated {counts.products} products, "
                    f"{counts.customers} customers, and {counts.orders} orders."
                )
        except MigrationError:
            raise
        except Exception as e:
            raise MigrationError(str(e)) from e

        return counts, message

    def _bulk_insert(self, table_name: str, rows: List[Dict[str, Any]]) -> None:
        total = 0
        for batch in chunked(rows, self.batch_size):
            self.store.insert(table_name, batch)
            total += len(batch)
            logger.info("Inserted %d %s (running total: %d)", len(batch), table_name, total)

    def _customer_index(self) -> Dict[str, Any]:
        remote_customers = self.store.select("customers", columns="id, phone, name")
        return build_customer_index(remote_customers)

    def _migrate_primary(self, products, customers, orders) -> MigrationCounts:
        logger.info(
            "Migrating %d products, %d customers, %d orders",
            len(products), len(customers), len(orders),
        )
        self._bulk_insert("products", [to_product_row(p, i) for i, p in enumerate(products)])
        self._bulk_insert("customers", [to_customer_row(c, i) for i, c in enumerate(customers)])

        if orders:
            customer_index = self._customer_index()
            self._bulk_insert("orders", [to_order_row(o, customer_index) for o in orders])

        return MigrationCounts(products=len(products), customers=len(customers), orders=len(orders))

    def _insert_one(self, table_name: str, row: Dict[str, Any]) -> bool:
        try:
            self.store.insert(table_name, [row])
        except RemoteStoreError as e:
            logger.warning("Skipped %s row (may be duplicate): %s", table_name, e)
            return False
        return True

    def _migrate_simple(self, products, customers, orders) -> MigrationCounts:
        migrated_products = sum(
            self._insert_one("products", to_product_row(p, i)) for i, p in enumerate(products)
        )
        migrated_customers = sum(
            self._insert_one("customers", to_customer_row(c, i)) for i, c in enumerate(customers)
        )
        migrated_orders = sum(
            self._insert_one("orders", to_order_row(o, link_relations=False)) for o in orders
        )
        return MigrationCounts(
            products=migrated_products,
            customers=migrated_customers,
            orders=migrated_orders,
        )


def run_migration(store, local_storage: LocalStorage, sink) -> MigrationOutcome:
    return MigrationJob(store, local_storage, sink).run()


if __name__ == "__main__":
    from smartinventory.config import get_settings
    from smartinventory.data_integrator import create_store
    from smartinventory.services.storage_service import create_sink

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = get_settings()
    outcome = run_migration(
        store=create_store(settings),
        local_storage=LocalStorage(settings.local_storage_file),
        sink=create_sink(settings),
    )
    print(outcome.message)
