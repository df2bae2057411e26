"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state. State tracks ids returned by
creation endpoints so follow-up requests can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class OrderState:
    """Orders one simulated customer has placed."""

    order_ids: list[str] = field(default_factory=list)
    rejected: int = 0


@dataclass
class ReviewState:
    """Tracks a single simulated review from creation to deletion."""

    user_id: str | None = None
    product_id: str | None = None
    review_id: str | None = None
    photo_count: int = 0
