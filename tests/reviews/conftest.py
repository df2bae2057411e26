from decimal import Decimal

import pytest
from protean.integrations.pytest import DomainFixture

from catalogue import InMemoryCatalog
from media import FakeMediaStore, MediaUpload, ResourceCompensationSaga
from reviews.domain import reviews
from reviews.review.service import ReviewService
from reviews.review.store import ProteanReviewStore


@pytest.fixture(scope="session")
def reviews_bed():
    bed = DomainFixture(reviews)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(reviews_bed):
    with reviews_bed.domain_context():
        yield


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
def saga(media):
    saga = ResourceCompensationSaga(media, max_workers=4)
    yield saga
    saga.close()


@pytest.fixture()
def review_store():
    return ProteanReviewStore(reviews)


@pytest.fixture()
def service(review_store, saga, catalog):
    return ReviewService(domain=reviews, reviews=review_store, saga=saga, catalog=catalog)


@pytest.fixture()
def photos():
    def make(count, prefix="photo"):
        return [
            MediaUpload(content=b"\xff\xd8\xff", filename=f"{prefix}-{i}.jpg", content_type="image/jpeg")
            for i in range(count)
        ]

    return make
