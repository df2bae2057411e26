"""Fixtures for tests that drive the whole HTTP application.

Each test gets its own services, catalogue and media host, and the app
closes them on shutdown.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app import build_services, create_app
from catalogue import InMemoryCatalog
from media import FakeMediaStore
from ordering.domain import ordering
from ordering.order.customers import CustomerProfile, InMemoryCustomerDirectory
from reviews.domain import reviews
from shared.config import Settings


@pytest.fixture(scope="session")
def _domains():
    """Both domains, initialized at session start."""
    return ordering, reviews


@pytest.fixture()
def catalog():
    catalog = InMemoryCatalog()
    catalog.add_product("poster-001", "Starry Night", Decimal("100.00"), stock=5)
    catalog.add_product("poster-002", "The Great Wave", Decimal("75.50"), stock=10)
    return catalog


@pytest.fixture()
def media():
    return FakeMediaStore()


@pytest.fixture()
def services(_domains, catalog, media):
    return build_services(
        Settings(environment="test"),
        catalog=catalog,
        media=media,
        customers=InMemoryCustomerDirectory(
            [CustomerProfile(customer_id="cust-001", name="Asha Rao", email="asha@example.com")]
        ),
    )


@pytest.fixture()
def client(services):
    with TestClient(create_app(services)) as client:
        yield client
