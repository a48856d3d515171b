# smartinventory/services/catalog_service.py
"""
Data access for the dashboard lists (products, suppliers, customers, orders,
activities).

Every function takes the store explicitly and returns (ok, message, data).
A failed call is logged and reported through the message so the caller can
show it to the user; one failing list never takes the others down.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from smartinventory.exceptions import RemoteStoreError

logger = logging.getLogger(__name__)

ACTIVITY_LIMIT = 50

NEWEST_FIRST = ("created_at", False)


# ---------- generic helpers ----------

def _fetch(store, table_name: str, label: str, **query) -> Tuple[bool, str, List[Dict[str, Any]]]:
    try:
        rows = store.select(table_name, **query)
    except RemoteStoreError as e:
        logger.error("Failed to fetch %s: %s", label, e)
        return False, f"Failed to fetch {label}", []

    if not rows:
        return True, "No rows found", []
    return True, "Fetched", rows


def _add(store, table_name: str, label: str, row: Dict[str, Any]) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    try:
        inserted = store.insert(table_name, [row])
    except RemoteStoreError as e:
        logger.error("Failed to add %s: %s", label, e)
        return False, str(e), None

    return True, f"{label.capitalize()} added successfully", inserted[0] if inserted else None


def _update(store, table_name: str, label: str, row_id: Any, updates: Dict[str, Any]):
    try:
        updated = store.update(table_name, row_id, updates)
    except RemoteStoreError as e:
        logger.error("Failed to update %s %s: %s", label, row_id, e)
        return False, str(e), None

    return True, f"{label.capitalize()} updated successfully", updated


def _delete(store, table_name: str, label: str, row_id: Any) -> Tuple[bool, str]:
    try:
        store.delete(table_name, row_id)
    except RemoteStoreError as e:
        logger.error("Failed to delete %s %s: %s", label, row_id, e)
        return False, str(e)

    return True, f"{label.capitalize()} deleted successfully"


# ---------- products ----------

def fetch_products(store):
    """
    Products newest first, each with its supplier name under "suppliers".
    """
    return _fetch(store, "products", "products", columns="*, suppliers ( name )", order=NEWEST_FIRST)


def add_product(store, product: Dict[str, Any]):
    return _add(store, "products", "product", product)


def update_product(store, product_id: Any, updates: Dict[str, Any]):
    return _update(store, "products", "product", product_id, updates)


def delete_product(store, product_id: Any):
    return _delete(store, "products", "product", product_id)


# ---------- suppliers ----------

def fetch_suppliers(store):
    return _fetch(store, "suppliers", "suppliers", order=("name", True))


def add_supplier(store, supplier: Dict[str, Any]):
    return _add(store, "suppliers", "supplier", supplier)


def update_supplier(store, supplier_id: Any, updates: Dict[str, Any]):
    return _update(store, "suppliers", "supplier", supplier_id, updates)


def delete_supplier(store, supplier_id: Any):
    return _delete(store, "suppliers", "supplier", supplier_id)


# ---------- customers ----------

def fetch_customers(store):
    return _fetch(store, "customers", "customers", order=NEWEST_FIRST)


def add_customer(store, customer: Dict[str, Any]):
    """
    New customers start with zeroed purchase stats and the current UTC time
    as join and last purchase date, unless the caller supplies them.
    """
    now = datetime.now(timezone.utc).isoformat()
    row = {
        "total_purchases": 0,
        "total_spent": 0,
        "last_purchase": now,
        "join_date": now,
        "loyalty_points": 0,
        **customer,
    }
    return _add(store, "customers", "customer", row)


def update_customer(store, customer_id: Any, updates: Dict[str, Any]):
    return _update(store, "customers", "customer", customer_id, updates)


def delete_customer(store, customer_id: Any):
    return _delete(store, "customers", "customer", customer_id)


# ---------- orders ----------

def fetch_orders(store):
    """
    Orders newest first, each with the buyer under "customers".
    """
    return _fetch(
        store,
        "orders",
        "orders",
        columns="*, customers ( name, phone, email )",
        order=NEWEST_FIRST,
    )


def add_order(store, order: Dict[str, Any]):
    ok, msg, data = _add(store, "orders", "order", order)
    if ok:
        msg = "Order created successfully"
    return ok, msg, data


# ---------- activities ----------

def fetch_activities(store, limit: int = ACTIVITY_LIMIT):
    return _fetch(store, "activities", "activities", order=NEWEST_FIRST, limit=limit)


def add_activity(store, activity: Dict[str, Any]):
    return _add(store, "activities", "activity", activity)
