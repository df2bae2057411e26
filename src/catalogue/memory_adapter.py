"""In-memory catalogue for development and testing.

The lock plays the role of the data store's row lock: each conditional
update runs entirely inside it, so concurrent callers can never both observe
the same stock and jointly oversell.
"""

import threading
from decimal import Decimal

from catalogue.port import Catalog, CatalogEntry


class InMemoryCatalog(Catalog):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._products: dict[str, dict] = {}
        self.fail_decrement_for: set[str] = set()

    def add_product(self, product_id: str, title: str, price, stock: int) -> None:
        if stock < 0:
            raise ValueError("Stock cannot be negative")
        with self._lock:
            self._products[str(product_id)] = {
                "title": title,
                "price": Decimal(str(price)),
                "stock": int(stock),
            }

    def remove_product(self, product_id: str) -> None:
        with self._lock:
            self._products.pop(str(product_id), None)

    def stock_of(self, product_id: str) -> int | None:
        with self._lock:
            record = self._products.get(str(product_id))
            return record["stock"] if record else None

    def get_many(self, product_ids: list[str]) -> dict[str, CatalogEntry]:
        with self._lock:
            return {
                pid: CatalogEntry(
                    product_id=pid,
                    title=record["title"],
                    price=record["price"],
                    stock=record["stock"],
                )
                for pid in dict.fromkeys(str(p) for p in product_ids)
                if (record := self._products.get(pid)) is not None
            }

    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        if product_id in self.fail_decrement_for:
            raise ConnectionError(f"Catalogue store unavailable for {product_id}")
        with self._lock:
            record = self._products.get(str(product_id))
            if record is None or record["stock"] < quantity:
                return False
            record["stock"] -= quantity
            return True

    def increment(self, product_id: str, quantity: int) -> bool:
        with self._lock:
            record = self._products.get(str(product_id))
            if record is None:
                return False
            record["stock"] += quantity
            return True
