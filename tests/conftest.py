import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Initialize both domains so that every test module, including the ones
    that never touch a DomainFixture, sees registered aggregates and providers.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from ordering.domain import ordering
    from reviews.domain import reviews

    ordering.init()
    reviews.init()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from ordering.domain import ordering
    from reviews.domain import reviews

    # Clear all databases
    for domain in (ordering, reviews):
        with domain.domain_context():
            for _, provider in domain.providers.items():
                provider._data_reset()
