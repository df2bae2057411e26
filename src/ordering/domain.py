"""Ordering bounded context: order placement with inventory consistency.

Owns the Order aggregate. Placement validates against the live catalogue,
prices server-side, persists the order and decrements stock atomically,
compensating every acquired side effect when a later step fails.
"""

from protean.domain import Domain

from shared.logging import get_logger

ordering = Domain(name="ordering")

logger = get_logger(__name__)
