"""Integration tests for the SQL catalogue against a file-backed SQLite database."""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine

from catalogue import SqlCatalog


@pytest.fixture()
def catalog(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'catalog.db'}", connect_args={"timeout": 30})
    catalog = SqlCatalog(engine)
    catalog.create_schema()
    catalog.add_product("poster-001", "Starry Night", Decimal("100.00"), stock=5)
    catalog.add_product("poster-002", "The Great Wave", Decimal("75.50"), stock=2)
    yield catalog
    catalog.drop_schema()
    catalog.close()


class TestSqlLookup:
    def test_get_many(self, catalog):
        entries = catalog.get_many(["poster-001", "poster-002", "missing", "poster-001"])
        assert set(entries) == {"poster-001", "poster-002"}
        assert entries["poster-002"].price == Decimal("75.50")
        assert entries["poster-002"].stock == 2

    def test_add_product_overwrites(self, catalog):
        catalog.add_product("poster-001", "Starry Night (Large)", Decimal("120.00"), stock=9)
        entry = catalog.get_many(["poster-001"])["poster-001"]
        assert entry.title == "Starry Night (Large)"
        assert entry.stock == 9

    def test_stock_of_missing_product(self, catalog):
        assert catalog.stock_of("missing") is None


class TestSqlConditionalDecrement:
    def test_decrement_within_stock(self, catalog):
        assert catalog.decrement_if_available("poster-001", 2)
        assert catalog.stock_of("poster-001") == 3

    def test_decrement_beyond_stock_changes_nothing(self, catalog):
        assert not catalog.decrement_if_available("poster-002", 3)
        assert catalog.stock_of("poster-002") == 2

    def test_increment(self, catalog):
        assert catalog.increment("poster-002", 3)
        assert catalog.stock_of("poster-002") == 5

    def test_increment_of_missing_product(self, catalog):
        assert not catalog.increment("missing", 1)

    def test_concurrent_decrements_never_oversell(self, catalog):
        barrier = threading.Barrier(8)
        outcomes = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            succeeded = catalog.decrement_if_available("poster-002", 1)
            with lock:
                outcomes.append(succeeded)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count(True) == 2
        assert catalog.stock_of("poster-002") == 0
