"""Money helpers.

Amounts are handled as ``Decimal`` and rounded once, half-up, to the
currency's smallest unit. Equality between amounts that crossed a float
boundary (client payloads, persisted Float fields) uses ``TOLERANCE``.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
TOLERANCE = Decimal("0.01")

SUPPORTED_CURRENCIES = frozenset({"INR", "USD"})


def to_decimal(value) -> Decimal:
    """Convert ints, floats and strings without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def within_tolerance(a, b) -> bool:
    return abs(to_decimal(a) - to_decimal(b)) <= TOLERANCE
