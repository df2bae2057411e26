"""Tests for all-or-nothing stock decrements and their restoration."""

from decimal import Decimal

import pytest

from catalogue import InMemoryCatalog
from inventory.ledger import InventoryLedger, StockMovement
from shared.result import ErrorKind


class FlakyRestoreCatalog(InMemoryCatalog):
    """Refuses to put stock back for selected products."""

    def __init__(self, refuse_increment_for=()):
        super().__init__()
        self.refuse_increment_for = set(refuse_increment_for)

    def increment(self, product_id, quantity):
        if product_id in self.refuse_increment_for:
            raise ConnectionError("Catalogue store unavailable")
        return super().increment(product_id, quantity)


def _stock(catalog):
    return {pid: catalog.stock_of(pid) for pid in ("poster-001", "poster-002", "poster-003")}


def _seed(catalog):
    catalog.add_product("poster-001", "Starry Night", Decimal("100.00"), stock=5)
    catalog.add_product("poster-002", "The Great Wave", Decimal("75.50"), stock=10)
    catalog.add_product("poster-003", "Water Lilies", Decimal("300.00"), stock=1)
    return catalog


@pytest.fixture()
def catalog():
    return _seed(InMemoryCatalog())


class TestDecrementAll:
    def test_all_lines_decremented(self, catalog):
        ledger = InventoryLedger(catalog)
        result = ledger.decrement_all([StockMovement("poster-001", 2), StockMovement("poster-002", 3)])

        assert result.ok
        assert len(result.value) == 2
        assert _stock(catalog) == {"poster-001": 3, "poster-002": 7, "poster-003": 1}

    def test_shortage_on_later_line_restores_earlier_lines(self, catalog):
        ledger = InventoryLedger(catalog)
        result = ledger.decrement_all(
            [
                StockMovement("poster-001", 2),
                StockMovement("poster-002", 3),
                StockMovement("poster-003", 2),
            ]
        )

        assert not result.ok
        assert result.error.kind == ErrorKind.INSUFFICIENT_STOCK
        assert result.error.details["product_id"] == "poster-003"
        assert result.compensation.attempted == ("poster-001:2", "poster-002:3")
        assert result.compensation.clean
        assert _stock(catalog) == {"poster-001": 5, "poster-002": 10, "poster-003": 1}

    def test_shortage_on_first_line_needs_no_compensation(self, catalog):
        result = InventoryLedger(catalog).decrement_all([StockMovement("poster-003", 2)])

        assert result.error.kind == ErrorKind.INSUFFICIENT_STOCK
        assert result.compensation.attempted == ()

    def test_store_error_is_a_storage_failure(self, catalog):
        catalog.fail_decrement_for.add("poster-002")
        result = InventoryLedger(catalog).decrement_all(
            [StockMovement("poster-001", 1), StockMovement("poster-002", 1)]
        )

        assert result.error.kind == ErrorKind.STORAGE_FAILURE
        assert catalog.stock_of("poster-001") == 5

    def test_failed_restoration_escalates(self):
        catalog = _seed(FlakyRestoreCatalog(refuse_increment_for={"poster-001"}))
        result = InventoryLedger(catalog).decrement_all(
            [
                StockMovement("poster-001", 2),
                StockMovement("poster-002", 1),
                StockMovement("poster-003", 5),
            ]
        )

        assert result.error.kind == ErrorKind.COMPENSATION_FAILURE
        assert result.error.details["unrestored"] == ["poster-001:2"]
        assert result.error.details["cause"]["kind"] == "InsufficientStock"
        assert result.compensation.failed == ("poster-001:2",)
        assert catalog.stock_of("poster-002") == 10


class TestSingleMovements:
    def test_non_positive_quantities_are_rejected(self, catalog):
        ledger = InventoryLedger(catalog)
        with pytest.raises(ValueError):
            ledger.decrement("poster-001", 0)
        with pytest.raises(ValueError):
            ledger.increment("poster-001", -1)

    def test_restore_reports_unknown_products(self, catalog):
        failed = InventoryLedger(catalog).restore([StockMovement("missing", 1), StockMovement("poster-001", 1)])

        assert failed == [StockMovement("missing", 1)]
        assert catalog.stock_of("poster-001") == 6
