"""Order persistence port and adapters.

- ``ProteanOrderStore`` persists through the ordering domain's repository.
- ``InMemoryOrderStore`` keeps orders in a dict; useful for thread-level
  tests where many placements run at once.

Placement needs insert, lookups, a mark once the order's stock has been
taken, and a delete used only to undo an order whose stock could not be
committed. Status changes happen elsewhere.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError

from ordering.order.order import Order

MAX_PAGE_SIZE = 50


@dataclass(frozen=True)
class OrderPage:
    items: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def clamp_page(page, limit, max_limit: int = MAX_PAGE_SIZE) -> tuple[int, int]:
    """Clamp rather than reject: page >= 1, 1 <= limit <= max_limit."""
    page = max(1, int(page or 1))
    limit = min(max(1, int(limit or 1)), max_limit)
    return page, limit


class OrderStore(ABC):
    @abstractmethod
    def insert(self, order: Order) -> str: ...

    @abstractmethod
    def find_by_id(self, order_id: str) -> Order | None: ...

    @abstractmethod
    def find_by_customer(self, customer_id: str, page: int, limit: int) -> OrderPage: ...

    @abstractmethod
    def find_by_idempotency_key(self, key: str) -> Order | None: ...

    @abstractmethod
    def mark_committed(self, order: Order) -> None:
        """Record that the order's stock commit finished."""
        ...

    @abstractmethod
    def delete(self, order_id: str) -> bool:
        """Remove an order. Only used to undo a placement that failed to commit."""
        ...


class ProteanOrderStore(OrderStore):
    def __init__(self, domain: Domain) -> None:
        self._domain = domain

    def insert(self, order: Order) -> str:
        with self._domain.domain_context():
            self._domain.repository_for(Order).add(order)
        return str(order.id)

    def find_by_id(self, order_id: str) -> Order | None:
        with self._domain.domain_context():
            try:
                return self._domain.repository_for(Order).get(order_id)
            except ObjectNotFoundError:
                return None

    def find_by_customer(self, customer_id: str, page: int, limit: int) -> OrderPage:
        page, limit = clamp_page(page, limit)
        with self._domain.domain_context():
            results = (
                self._domain.repository_for(Order)
                ._dao.query.filter(customer_id=str(customer_id))
                .order_by("-created_at")
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        return OrderPage(items=list(results.items), total=results.total, page=page, limit=limit)

    def find_by_idempotency_key(self, key: str) -> Order | None:
        with self._domain.domain_context():
            results = self._domain.repository_for(Order)._dao.query.filter(idempotency_key=key).all()
        return results.items[0] if results.items else None

    def mark_committed(self, order: Order) -> None:
        order.mark_committed()
        with self._domain.domain_context():
            self._domain.repository_for(Order).add(order)

    def delete(self, order_id: str) -> bool:
        with self._domain.domain_context():
            repo = self._domain.repository_for(Order)
            try:
                order = repo.get(order_id)
            except ObjectNotFoundError:
                return False
            repo._dao.delete(order)
        return True


class InMemoryOrderStore(OrderStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._orders: dict[str, Order] = {}
        self.fail_inserts = False
        self.fail_deletes = False
        self.fail_commits = False

    def insert(self, order: Order) -> str:
        if self.fail_inserts:
            raise ConnectionError("Order store unavailable")
        with self._lock:
            self._orders[str(order.id)] = order
        return str(order.id)

    def find_by_id(self, order_id: str) -> Order | None:
        with self._lock:
            return self._orders.get(str(order_id))

    def find_by_customer(self, customer_id: str, page: int, limit: int) -> OrderPage:
        page, limit = clamp_page(page, limit)
        with self._lock:
            matching = [o for o in self._orders.values() if str(o.customer_id) == str(customer_id)]
        matching.sort(key=lambda o: o.created_at, reverse=True)
        start = (page - 1) * limit
        return OrderPage(items=matching[start : start + limit], total=len(matching), page=page, limit=limit)

    def find_by_idempotency_key(self, key: str) -> Order | None:
        with self._lock:
            return next((o for o in self._orders.values() if o.idempotency_key == key), None)

    def mark_committed(self, order: Order) -> None:
        if self.fail_commits:
            raise ConnectionError("Order store unavailable")
        with self._lock:
            order.mark_committed()

    def delete(self, order_id: str) -> bool:
        if self.fail_deletes:
            raise ConnectionError("Order store unavailable")
        with self._lock:
            return self._orders.pop(str(order_id), None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)
