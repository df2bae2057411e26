"""Catalogue store construction.

The catalogue itself (product CRUD) lives outside this service; here we only
read prices/stock and apply conditional stock updates.
"""

from catalogue.memory_adapter import InMemoryCatalog
from catalogue.port import Catalog, CatalogEntry, CatalogReader, StockStore
from catalogue.sql_adapter import SqlCatalog

__all__ = [
    "Catalog",
    "CatalogEntry",
    "CatalogReader",
    "InMemoryCatalog",
    "SqlCatalog",
    "StockStore",
    "build_catalog",
]


def build_catalog(database_uri: str = "") -> Catalog:
    """Return a SQL catalogue for a database URI, or an in-memory one."""
    if database_uri:
        return SqlCatalog.from_uri(database_uri)
    return InMemoryCatalog()
