from decimal import Decimal

import pytest
from protean.integrations.pytest import DomainFixture

from catalogue import InMemoryCatalog
from inventory.ledger import InventoryLedger
from media import FakeMediaStore, ResourceCompensationSaga
from ordering.domain import ordering
from ordering.order.customers import CustomerProfile, InMemoryCustomerDirectory
from ordering.order.placement import OrderCommitCoordinator, OrderSubmission, PaymentDetails
from ordering.order.pricing import PricingCalculator, PricingPolicy
from ordering.order.store import InMemoryOrderStore
from ordering.order.validation import CatalogSnapshotValidator, SubmittedItem

DELHI_ADDRESS = {
    "address_line1": "12 Janpath",
    "city": "New Delhi",
    "region": "Delhi",
    "postal_code": "110001",
    "phone": "9876543210",
}


@pytest.fixture(scope="session")
def ordering_bed():
    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def catalog():
    catalog = InMemoryCatalog()
    catalog.add_product("poster-001", "Starry Night", Decimal("100.00"), stock=5)
    catalog.add_product("poster-002", "The Great Wave", Decimal("75.50"), stock=10)
    catalog.add_product("poster-003", "Water Lilies", Decimal("300.00"), stock=1)
    return catalog


@pytest.fixture()
def media():
    return FakeMediaStore()


@pytest.fixture()
def saga(media):
    saga = ResourceCompensationSaga(media, max_workers=4)
    yield saga
    saga.close()


@pytest.fixture()
def order_store():
    return InMemoryOrderStore()


@pytest.fixture()
def customers():
    return InMemoryCustomerDirectory(
        [CustomerProfile(customer_id="cust-001", name="Asha Rao", email="asha@example.com", phone="9000000001")]
    )


@pytest.fixture()
def coordinator(catalog, order_store, saga, customers):
    return OrderCommitCoordinator(
        domain=ordering,
        validator=CatalogSnapshotValidator(catalog),
        pricing=PricingCalculator(PricingPolicy()),
        ledger=InventoryLedger(catalog),
        orders=order_store,
        saga=saga,
        customers=customers,
    )


@pytest.fixture()
def make_submission():
    return build_submission


def build_submission(items=None, amount="286.00", method="ONLINE", region="Delhi", **overrides):
    """Two Starry Night posters to Delhi: 200 + 50 shipping + 36 tax = 286."""
    address = {**DELHI_ADDRESS, "region": region}
    defaults = {
        "items": items
        if items is not None
        else [SubmittedItem(product_id="poster-001", quantity=2, client_price=Decimal("100.00"))],
        "shipping_address": address,
        "payment": PaymentDetails(
            method=method,
            transaction_id="txn-001",
            amount=Decimal(amount),
            currency="INR",
        ),
    }
    defaults.update(overrides)
    return OrderSubmission(**defaults)
