# smartinventory/utils/data_migrator.py

import secrets
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

BATCH_SIZE = 500

DEFAULT_HSN_CODE = "8517"
DEFAULT_TAX_RATE = 18.0


def chunked(items: List[Dict], size: int) -> Iterable[List[Dict]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _millis() -> int:
    return int(time.time() * 1000)


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _first(record: Dict[str, Any], *keys: str) -> Any:
    """
    First non-empty value among `keys`, so camelCase local fields and
    snake_case remote fields can both be read. Zero counts as a value.
    """
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def to_product_row(p: Dict[str, Any], index: int) -> Dict[str, Any]:
    """
    Map a locally stored product to a `products` row. A missing SKU gets a
    generated placeholder because the column is unique.
    """
    return {
        "name": p.get("name") or "Unknown Product",
        "description": p.get("description") or "",
        "sku": p.get("sku") or f"SKU-{_millis()}-{index}-{secrets.token_hex(3)}",
        "barcode": p.get("barcode") or "",
        "category": p.get("category") or "Uncategorized",
        "unit_price": _to_float(_first(p, "unitPrice", "unit_price", "price")),
        "current_stock": _to_int(_first(p, "currentStock", "current_stock", "stock")),
        "min_stock": _to_int(_first(p, "minStock", "min_stock")),
        "track_inventory": p.get("trackInventory", p.get("track_inventory")) is not False,
        "images": p.get("images") or [],
        "hsn_code": _first(p, "hsnCode", "hsn_code") or DEFAULT_HSN_CODE,
    }


def to_customer_row(c: Dict[str, Any], index: int) -> Dict[str, Any]:
    """
    Map a locally stored customer to a `customers` row. A missing phone gets
    a generated placeholder because the column is unique.
    """
    return {
        "name": c.get("name") or "Unknown Customer",
        "phone": c.get("phone") or f"temp-phone-{index}-{_millis()}",
        "email": c.get("email") or "",
        "address": c.get("address") or "",
        "gst_number": _first(c, "gstNumber", "gst_number") or "",
        "total_purchases": _to_int(_first(c, "totalPurchases", "total_purchases")),
        "total_spent": _to_float(_first(c, "totalSpent", "total_spent")),
        "last_purchase": _first(c, "lastPurchase", "last_purchase") or _now_iso(),
        "join_date": _first(c, "joinDate", "join_date") or _now_iso(),
        "loyalty_points": _to_int(_first(c, "loyaltyPoints", "loyalty_points")),
    }


def build_customer_index(remote_customers: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    {phone: id, name: id} over remote customers. Phones win over names when
    both collide.
    """
    index: Dict[str, Any] = {}
    for c in remote_customers:
        if c.get("name"):
            index.setdefault(c["name"], c["id"])
    for c in remote_customers:
        if c.get("phone"):
            index[c["phone"]] = c["id"]
    return index


def resolve_customer_id(order: Dict[str, Any], customer_index: Dict[str, Any]) -> Optional[Any]:
    customer = order.get("customer")
    if not isinstance(customer, dict):
        return None
    return customer_index.get(customer.get("phone")) or customer_index.get(customer.get("name"))


def to_order_row(
        o: Dict[str, Any],
        customer_index: Optional[Dict[str, Any]] = None,
        link_relations: bool = True,
) -> Dict[str, Any]:
    """
    Map a locally stored POS order to an `orders` row.

    With `link_relations=False` the row carries no `customer_id` and its
    items no `product_id`, the fields most likely to break foreign keys.
    """
    items = []
    for item in o.get("items") or []:
        quantity = _to_int(item.get("quantity"), 1) or 1
        price = _to_float(item.get("price"))
        line = {
            "product_name": item.get("name") or "Unknown Product",
            "quantity": quantity,
            "price": price,
            "total": price * quantity,
        }
        if link_relations:
            line = {"product_id": "", **line}
        items.append(line)

    row = {
        "items": items,
        "subtotal": _to_float(o.get("subtotal")),
        "discount_percent": _to_float(_first(o, "discountPercent", "discount_percent")),
        "discount_amount": _to_float(_first(o, "discountAmount", "discount_amount")),
        "tax_rate": _to_float(_first(o, "taxRate", "tax_rate"), DEFAULT_TAX_RATE),
        "tax_amount": _to_float(_first(o, "taxAmount", "tax_amount")),
        "total": _to_float(o.get("total")),
        "payment_method": _first(o, "paymentMethod", "payment_method") or "Cash",
        "payment_details": _first(o, "paymentDetails", "payment_details"),
        "created_at": _first(o, "createdAt", "created_at") or _now_iso(),
    }

    if link_relations:
        row = {"customer_id": resolve_customer_id(o, customer_index or {}), **row}

    return row
