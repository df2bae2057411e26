"""Typed results shared by the order placement and review mutation flows.

Services return a ``Result`` instead of raising, so that callers (and the
compensation logic inside the services) can branch on ``ErrorKind`` without
inspecting exception types.

Error taxonomy:
    INVALID_INPUT            malformed ids, empty item lists, bad quantities
    NOT_FOUND                missing product, order, review or customer
    FORBIDDEN                acting on another user's resource
    CONFLICT                 duplicate resource (one review per product)
    INSUFFICIENT_STOCK       requested quantity exceeds available stock
    PRICE_MISMATCH           client price differs from the catalogue price
    PAYMENT_AMOUNT_MISMATCH  payment amount differs from the computed total
    STORAGE_FAILURE          a store or media host failed
    COMPENSATION_FAILURE     stock or an order record could not be restored
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    CONFLICT = "Conflict"
    INSUFFICIENT_STOCK = "InsufficientStock"
    PRICE_MISMATCH = "PriceMismatch"
    PAYMENT_AMOUNT_MISMATCH = "PaymentAmountMismatch"
    STORAGE_FAILURE = "StorageFailure"
    COMPENSATION_FAILURE = "CompensationFailure"

    @property
    def is_client_error(self) -> bool:
        return self not in (ErrorKind.STORAGE_FAILURE, ErrorKind.COMPENSATION_FAILURE)

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.PRICE_MISMATCH: 422,
    ErrorKind.PAYMENT_AMOUNT_MISMATCH: 422,
    ErrorKind.STORAGE_FAILURE: 500,
    ErrorKind.COMPENSATION_FAILURE: 500,
}


@dataclass(frozen=True)
class DomainError:
    """A failure with enough context to debug it from the response alone."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


@dataclass(frozen=True)
class CompensationReport:
    """Outcome of a best-effort cleanup: what was attempted and what failed."""

    attempted: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.failed

    def merge(self, other: "CompensationReport") -> "CompensationReport":
        return CompensationReport(
            attempted=self.attempted + other.attempted,
            failed=self.failed + other.failed,
        )

    def to_dict(self) -> dict:
        return {"attempted": list(self.attempted), "failed": list(self.failed)}


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a ``DomainError``, plus any compensation performed."""

    value: T | None = None
    error: DomainError | None = None
    compensation: CompensationReport = field(default_factory=CompensationReport)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None, compensation: CompensationReport | None = None) -> "Result[T]":
        return cls(value=value, compensation=compensation or CompensationReport())

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        compensation: CompensationReport | None = None,
        **details: Any,
    ) -> "Result[T]":
        return cls(
            error=DomainError(kind=kind, message=message, details=details),
            compensation=compensation or CompensationReport(),
        )

    def with_compensation(self, report: CompensationReport) -> "Result[T]":
        return Result(value=self.value, error=self.error, compensation=self.compensation.merge(report))
