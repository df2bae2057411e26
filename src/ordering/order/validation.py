"""CatalogSnapshotValidator: cross-checks submitted items against the catalogue.

Runs before anything is written. Stock sufficiency checked here is only an
early answer for the client; the authoritative check is the conditional
decrement at commit time.
"""

import re
from dataclasses import dataclass
from decimal import Decimal


from catalogue.port import CatalogReader
from shared.logging import get_logger
from shared.money import TOLERANCE, to_decimal
from shared.result import ErrorKind, Result

logger = get_logger(__name__)

PRODUCT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")


@dataclass(frozen=True)
class SubmittedItem:
    product_id: str
    quantity: int
    client_price: Decimal


@dataclass(frozen=True)
class PricedItem:
    product_id: str
    title: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "title": self.title,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
        }


@dataclass(frozen=True)
class ValidatedSnapshot:
    items: tuple[PricedItem, ...]
    subtotal: Decimal


def is_valid_id(value) -> bool:
    return isinstance(value, str) and bool(PRODUCT_ID_PATTERN.match(value))


class CatalogSnapshotValidator:
    def __init__(self, catalog: CatalogReader) -> None:
        self._catalog = catalog

    def _check_shape(self, items: list[SubmittedItem]) -> Result | None:
        if not items:
            return Result.failure(ErrorKind.INVALID_INPUT, "Order must contain at least one item")

        seen = set()
        for item in items:
            if not is_valid_id(item.product_id):
                return Result.failure(
                    ErrorKind.INVALID_INPUT,
                    "Invalid product id format",
                    product_id=item.product_id,
                )
            if item.product_id in seen:
                return Result.failure(
                    ErrorKind.INVALID_INPUT,
                    f"Product {item.product_id} appears more than once",
                    product_id=item.product_id,
                )
            seen.add(item.product_id)
            if not isinstance(item.quantity, int) or isinstance(item.quantity, bool) or item.quantity < 1:
                return Result.failure(
                    ErrorKind.INVALID_INPUT,
                    "Quantity must be a positive integer",
                    product_id=item.product_id,
                    quantity=item.quantity,
                )
            client_price = to_decimal(item.client_price)
            if not client_price.is_finite():
                return Result.failure(
                    ErrorKind.INVALID_INPUT,
                    "Price must be a finite number",
                    product_id=item.product_id,
                )
            if client_price < 0:
                return Result.failure(
                    ErrorKind.INVALID_INPUT,
                    "Price cannot be negative",
                    product_id=item.product_id,
                )
        return None

    def validate(self, items: list[SubmittedItem]) -> Result[ValidatedSnapshot]:
        malformed = self._check_shape(items)
        if malformed is not None:
            return malformed

        try:
            entries = self._catalog.get_many([item.product_id for item in items])
        except Exception as exc:
            logger.error("Catalogue lookup failed", error=str(exc))
            return Result.failure(ErrorKind.STORAGE_FAILURE, "Catalogue lookup failed", reason=str(exc))

        missing = [item.product_id for item in items if item.product_id not in entries]
        if missing:
            return Result.failure(
                ErrorKind.NOT_FOUND,
                f"Product with ID {missing[0]} not found",
                product_ids=missing,
            )

        priced = []
        for item in items:
            entry = entries[item.product_id]
            if item.quantity > entry.stock:
                return Result.failure(
                    ErrorKind.INSUFFICIENT_STOCK,
                    f'Insufficient stock for product "{entry.title}". '
                    f"Available: {entry.stock}, Requested: {item.quantity}",
                    product_id=item.product_id,
                    available=entry.stock,
                    requested=item.quantity,
                )

            client_price = to_decimal(item.client_price)
            if abs(client_price - entry.price) > TOLERANCE:
                return Result.failure(
                    ErrorKind.PRICE_MISMATCH,
                    f'Price mismatch for product "{entry.title}". '
                    f"Expected: {entry.price}, Received: {client_price}",
                    product_id=item.product_id,
                    expected=str(entry.price),
                    received=str(client_price),
                )

            priced.append(
                PricedItem(
                    product_id=item.product_id,
                    title=entry.title,
                    quantity=item.quantity,
                    unit_price=entry.price,
                )
            )

        subtotal = sum((p.line_total for p in priced), start=Decimal("0"))
        return Result.success(ValidatedSnapshot(items=tuple(priced), subtotal=subtotal))
