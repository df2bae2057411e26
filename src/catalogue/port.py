"""Catalogue ports (abstract interfaces).

Order placement only ever needs two things from the catalogue:

- ``CatalogReader``: a batched, read-only lookup of price/stock/title.
- ``StockStore``: the store-side conditional stock update. Implementations
  must perform "decrement if stock >= quantity" as ONE operation inside the
  data store (a conditional UPDATE, a compare-and-swap), never as a read
  followed by an unconditional write.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CatalogEntry:
    """Current catalogue state of one product."""

    product_id: str
    title: str
    price: Decimal
    stock: int


class CatalogReader(ABC):
    @abstractmethod
    def get_many(self, product_ids: list[str]) -> dict[str, CatalogEntry]:
        """Return entries for the ids that exist, keyed by product id.

        Ids without a matching product are absent from the mapping.
        """
        ...


class StockStore(ABC):
    @abstractmethod
    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` iff current stock >= ``quantity``."""
        ...

    @abstractmethod
    def increment(self, product_id: str, quantity: int) -> bool:
        """Add ``quantity`` back. Returns False if the product no longer exists."""
        ...


class Catalog(CatalogReader, StockStore):
    """A catalogue store that serves both lookups and stock updates."""

    @abstractmethod
    def add_product(self, product_id: str, title: str, price, stock: int) -> None:
        """Create or overwrite a product record."""
        ...

    @abstractmethod
    def stock_of(self, product_id: str) -> int | None:
        ...

    def close(self) -> None:  # noqa: B027
        """Release any resources held by the store."""
