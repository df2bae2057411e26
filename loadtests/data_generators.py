"""Faker-based data generators for Locust load test scenarios.

Payloads match the API's Pydantic request schemas and the catalogue seeded
by ``python src/manage.py seed``. Totals are computed with the same rules the
server applies, so a generated order is accepted unless stock runs out.
"""

import base64
import random
import uuid
from decimal import ROUND_HALF_UP, Decimal

from faker import Faker

fake = Faker("en_IN")

# Matches manage.SAMPLE_POSTERS
POSTERS = {
    "poster-001": Decimal("100.00"),
    "poster-002": Decimal("75.50"),
    "poster-003": Decimal("300.00"),
    "poster-004": Decimal("149.00"),
    "poster-005": Decimal("89.99"),
}
HOT_PRODUCT = "poster-001"

REGIONS = ["Delhi", "Maharashtra", "Karnataka", "Tamil Nadu", "Ladakh"]
REMOTE_REGIONS = {"Jammu and Kashmir", "Arunachal Pradesh", "Ladakh"}

CENT = Decimal("0.01")

# Smallest valid JPEG header, enough for the fake media host
PHOTO = base64.b64encode(b"\xff\xd8\xff\xe0" + b"\x00" * 16).decode()


# ---------- Pricing ----------


def expected_total(subtotal: Decimal, region: str) -> Decimal:
    """Shipping 50 below 250, plus 150 for remote regions, plus 18% tax."""
    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
    shipping = Decimal("0") if subtotal >= Decimal("250") else Decimal("50")
    if region in REMOTE_REGIONS:
        shipping += Decimal("150")
    tax = (subtotal * Decimal("0.18")).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal + shipping + tax


# ---------- Ordering ----------


def shipping_address(region: str | None = None) -> dict:
    return {
        "address_line1": fake.street_address()[:120],
        "city": fake.city()[:60],
        "region": region or random.choice(REGIONS),
        "postal_code": fake.postcode(),
        "phone": f"9{random.randint(100000000, 999999999)}",
    }


def order_data(lines: dict[str, int] | None = None, region: str | None = None) -> dict:
    """Generate a PlaceOrderRequest whose payment matches the server total."""
    if lines is None:
        picked = random.sample(sorted(POSTERS), k=random.randint(1, 3))
        lines = {product_id: random.randint(1, 2) for product_id in picked}

    address = shipping_address(region)
    subtotal = sum((POSTERS[product_id] * quantity for product_id, quantity in lines.items()), Decimal("0"))
    total = expected_total(subtotal, address["region"])

    return {
        "items": [
            {"product_id": product_id, "quantity": quantity, "price": float(POSTERS[product_id])}
            for product_id, quantity in lines.items()
        ],
        "shipping_address": address,
        "payment": {
            "method": random.choice(["ONLINE", "ONLINE", "COD"]),
            "transaction_id": f"txn-{uuid.uuid4().hex[:12]}",
            "amount": float(total),
            "currency": "INR",
        },
        "customer": {"name": fake.name()[:80], "email": fake.email()},
        "idempotency_key": f"lt-{uuid.uuid4().hex}",
    }


def hot_order_data() -> dict:
    """One unit of the contended product."""
    return order_data({HOT_PRODUCT: 1}, region="Delhi")


# ---------- Reviews ----------


def reviewer_id() -> str:
    return f"user-lt-{uuid.uuid4().hex[:8]}"


def review_data(user_id: str, product_id: str | None = None, photos: int = 0) -> dict:
    return {
        "user_id": user_id,
        "product_id": product_id or random.choice(sorted(POSTERS)),
        "rating": random.randint(1, 5),
        "comment": fake.sentence(nb_words=12)[:500],
        "images": [image_data(n) for n in range(photos)],
    }


def image_data(n: int = 0) -> dict:
    return {"content": PHOTO, "filename": f"photo-{n}.jpg", "content_type": "image/jpeg"}
