"""Customer lookup port.

User accounts are managed by the identity service. Placement only needs to
confirm that a customer id exists and to fall back to its profile for
contact details the client did not override.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CustomerProfile:
    customer_id: str
    name: str
    email: str | None = None
    phone: str | None = None


class CustomerDirectory(ABC):
    @abstractmethod
    def get(self, customer_id: str) -> CustomerProfile | None: ...


class InMemoryCustomerDirectory(CustomerDirectory):
    def __init__(self, profiles=()) -> None:
        self._profiles = {p.customer_id: p for p in profiles}

    def register(self, profile: CustomerProfile) -> None:
        self._profiles[profile.customer_id] = profile

    def get(self, customer_id: str) -> CustomerProfile | None:
        return self._profiles.get(str(customer_id))
