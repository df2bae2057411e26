"""Shared BDD fixtures and step definitions for order placement."""

from decimal import Decimal

import pytest
from pytest_bdd import given, parsers, then

from catalogue import InMemoryCatalog


@pytest.fixture()
def catalog():
    return InMemoryCatalog()


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalogue has "{product_id}" priced at {price} with {stock:d} in stock'))
def _(catalog, product_id, price, stock):
    catalog.add_product(product_id, product_id.replace("-", " ").title(), Decimal(price), stock=stock)


@given(parsers.cfparse("the media host rejects upload number {call:d}"))
def _(media, call):
    media.configure(fail_uploads={call})


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the order is committed")
def _(placement):
    assert placement.ok, placement.error


@then(parsers.cfparse('the order is rejected as "{kind}"'))
def _(placement, kind):
    assert not placement.ok
    assert placement.error.kind.value == kind


@then(parsers.cfparse('"{product_id}" has {stock:d} in stock'))
def _(catalog, product_id, stock):
    assert catalog.stock_of(product_id) == stock


@then("no order was stored")
def _(order_store):
    assert len(order_store) == 0


@then("no media files remain")
def _(media):
    assert media.stored_ids == set()
