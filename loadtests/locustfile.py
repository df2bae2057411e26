"""Poster Parlor Load Testing - Locust entry point.

Seed the catalogue the API reads before starting:

    CATALOG_DATABASE_URI=sqlite:///parlor.db python src/manage.py seed --stock 500
    CATALOG_DATABASE_URI=sqlite:///parlor.db uvicorn app:application --factory --app-dir src

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Stock contention only:
    locust -f loadtests/locustfile.py HotProductUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py --headless -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.ordering import HotProductUser, OrderingUser  # noqa: F401
from loadtests.scenarios.reviews import ReviewerUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Print the service health once the run ends."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    if not environment.host:
        return
    try:
        resp = requests.get(f"{environment.host}/health", timeout=5)
        print(f"[LOADTEST] Health after run: {resp.status_code} {resp.text}\n")
    except requests.RequestException as e:
        print(f"[LOADTEST] Could not reach /health: {e}\n")
