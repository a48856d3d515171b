# smartinventory/utils/local_storage.py

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "dashboard_products"
CUSTOMERS_KEY = "app_customers"
ORDERS_KEY = "pos_orders"
ACTIVITIES_KEY = "recent_activity"

MIGRATED_KEYS = [PRODUCTS_KEY, CUSTOMERS_KEY, ORDERS_KEY, ACTIVITIES_KEY]


class LocalStorage:
    """
    Read-mostly view over a browser `localStorage` dump saved as one JSON
    object. Values are either JSON-encoded strings (the way the browser
    stores them) or already-decoded JSON.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a JSON object of storage keys")
        return data

    def read_raw(self, namespace: str) -> Any:
        """
        The stored value for `namespace` (decoded), or None when absent.
        Plain strings that are not JSON come back as they are.
        """
        value = self._load().get(namespace)
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value

    def read_all(self, namespace: str) -> List[Dict[str, Any]]:
        """
        The records stored under `namespace`. Missing keys and non-list
        values read as an empty list.
        """
        value = self.read_raw(namespace)
        if not isinstance(value, list):
            return []
        return value

    def remove(self, namespaces: Iterable[str]) -> None:
        if not self.path.exists():
            return
        data = self._load()
        removed = [key for key in namespaces if data.pop(key, None) is not None]
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        logger.info("Removed local storage keys: %s", ", ".join(removed) or "none")
