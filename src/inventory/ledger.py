"""InventoryLedger: the only writer of available stock during order placement.

Each line is decremented through the store's conditional update. When a
later line fails, every line already decremented in the same attempt is
restored before the failure is returned. A restoration that does not go
through is a data-integrity incident and is reported as
``COMPENSATION_FAILURE``, distinct from an ordinary stock shortage.
"""

from dataclasses import dataclass


from catalogue.port import StockStore
from shared.logging import get_logger
from shared.result import CompensationReport, ErrorKind, Result

logger = get_logger(__name__)


@dataclass(frozen=True)
class StockMovement:
    product_id: str
    quantity: int

    def describe(self) -> str:
        return f"{self.product_id}:{self.quantity}"


class InventoryLedger:
    def __init__(self, stock_store: StockStore) -> None:
        self._store = stock_store

    def decrement(self, product_id: str, quantity: int) -> bool:
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        return self._store.decrement_if_available(str(product_id), quantity)

    def increment(self, product_id: str, quantity: int) -> bool:
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        return self._store.increment(str(product_id), quantity)

    def restore(self, movements: list[StockMovement]) -> list[StockMovement]:
        """Re-increment ``movements`` in reverse order. Returns the ones that failed."""
        failed = []
        for movement in reversed(movements):
            try:
                restored = self.increment(movement.product_id, movement.quantity)
            except Exception as exc:
                logger.critical(
                    "Stock restoration raised",
                    product_id=movement.product_id,
                    quantity=movement.quantity,
                    error=str(exc),
                )
                restored = False
            if not restored:
                logger.critical(
                    "Stock restoration failed",
                    product_id=movement.product_id,
                    quantity=movement.quantity,
                )
                failed.append(movement)
        return failed

    def decrement_all(self, movements: list[StockMovement]) -> Result[list[StockMovement]]:
        """Decrement every movement in order, or none of them."""
        applied: list[StockMovement] = []
        for movement in movements:
            try:
                decremented = self.decrement(movement.product_id, movement.quantity)
            except Exception as exc:
                logger.error(
                    "Stock decrement raised",
                    product_id=movement.product_id,
                    quantity=movement.quantity,
                    error=str(exc),
                )
                return self._unwind(
                    applied,
                    Result.failure(
                        ErrorKind.STORAGE_FAILURE,
                        f"Stock update failed for product {movement.product_id}",
                        product_id=movement.product_id,
                        reason=str(exc),
                    ),
                )

            if not decremented:
                logger.info(
                    "Stock decrement rejected",
                    product_id=movement.product_id,
                    requested=movement.quantity,
                )
                return self._unwind(
                    applied,
                    Result.failure(
                        ErrorKind.INSUFFICIENT_STOCK,
                        f"Insufficient stock for product {movement.product_id}",
                        product_id=movement.product_id,
                        requested=movement.quantity,
                    ),
                )

            applied.append(movement)

        return Result.success(applied)

    def _unwind(self, applied: list[StockMovement], failure: Result) -> Result:
        if not applied:
            return failure

        failed = self.restore(applied)
        report = CompensationReport(
            attempted=tuple(m.describe() for m in applied),
            failed=tuple(m.describe() for m in failed),
        )
        if failed:
            return Result.failure(
                ErrorKind.COMPENSATION_FAILURE,
                "Stock could not be restored after a failed order",
                compensation=report,
                cause=failure.error.to_dict(),
                unrestored=[m.describe() for m in failed],
            )
        return failure.with_compensation(report)
