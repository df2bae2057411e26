"""OrderCommitCoordinator: the order placement entry point.

Every attempt walks a small state machine:

    VALIDATING → PRICING → PERSISTING → DECREMENTING → COMMITTED
    (any step) → FAILED

- VALIDATING: shape checks, customer lookup, catalogue cross-check. No side
  effects.
- PRICING: server-side shipping/tax/total; the client's payment amount must
  match the computed total. No side effects. Attachments are uploaded at the
  end of this step through the compensation saga.
- PERSISTING: the order is written with status Pending (cash on delivery) or
  Processing. A failed write compensates the uploaded attachments.
- DECREMENTING: stock is decremented line by line with the ledger's
  conditional update. A rejected decrement is a legitimate race outcome:
  earlier lines are restored, the order is deleted, attachments are
  released and the attempt fails with INSUFFICIENT_STOCK.
- COMMITTED: the order is marked committed. Only committed orders are
  replayed for a repeated idempotency key; a repeat that arrives while the
  first attempt is still in flight is refused with CONFLICT.

Validation and commit are separate operations; nothing locks a product in
between. The conditional decrement is what closes that window.
"""

from dataclasses import dataclass, field
from enum import Enum

from protean.domain import Domain
from protean.exceptions import ValidationError

from inventory.ledger import InventoryLedger, StockMovement
from media.port import MediaRef, MediaUpload
from media.saga import ResourceCompensationSaga
from ordering.order.customers import CustomerDirectory
from ordering.order.order import Order, PaymentMethod
from ordering.order.pricing import PriceBreakdown, PricingCalculator
from ordering.order.store import OrderStore, clamp_page
from ordering.order.validation import (
    CatalogSnapshotValidator,
    SubmittedItem,
    ValidatedSnapshot,
    is_valid_id,
)
from shared.logging import add_context, clear_context, get_logger
from shared.money import SUPPORTED_CURRENCIES, to_decimal, within_tolerance
from shared.result import CompensationReport, DomainError, ErrorKind, Result

logger = get_logger(__name__)

_REQUIRED_ADDRESS_FIELDS = ("address_line1", "city", "region", "postal_code")


class PlacementStage(Enum):
    VALIDATING = "Validating"
    PRICING = "Pricing"
    PERSISTING = "Persisting"
    DECREMENTING = "Decrementing"
    COMMITTED = "Committed"
    FAILED = "Failed"


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PaymentDetails:
    method: str
    transaction_id: str
    amount: float
    currency: str = "INR"

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "transaction_id": self.transaction_id,
            "amount": float(self.amount),
            "currency": self.currency,
        }


@dataclass(frozen=True)
class AttachmentUpload:
    upload: MediaUpload
    product_id: str | None = None


@dataclass(frozen=True)
class OrderSubmission:
    items: list[SubmittedItem]
    shipping_address: dict
    payment: PaymentDetails
    customer_id: str | None = None
    customer: dict | None = None
    attachments: list[AttachmentUpload] = field(default_factory=list)
    notes: str | None = None
    idempotency_key: str | None = None


@dataclass(frozen=True)
class PlacementResult:
    result: Result[Order]
    stages: tuple[PlacementStage, ...]
    replayed: bool = False

    @property
    def ok(self) -> bool:
        return self.result.ok

    @property
    def order(self) -> Order | None:
        return self.result.value

    @property
    def error(self) -> DomainError | None:
        return self.result.error

    @property
    def compensation(self) -> CompensationReport:
        return self.result.compensation

    @property
    def final_stage(self) -> PlacementStage:
        return self.stages[-1]


class _Attempt:
    """Tracks the stages one placement attempt went through."""

    def __init__(self) -> None:
        self.stages: list[PlacementStage] = []

    def enter(self, stage: PlacementStage) -> None:
        self.stages.append(stage)
        logger.debug("Placement stage entered", stage=stage.value)

    def fail(self, result: Result) -> PlacementResult:
        failed_at = self.stages[-1].value if self.stages else None
        self.stages.append(PlacementStage.FAILED)
        level = "info" if result.error.kind.is_client_error else "error"
        getattr(logger, level)(
            "Order placement failed",
            failed_at=failed_at,
            kind=result.error.kind.value,
            reason=result.error.message,
            compensation=result.compensation.to_dict(),
        )
        return PlacementResult(result=result, stages=tuple(self.stages))

    def commit(self, order: Order) -> PlacementResult:
        self.stages.append(PlacementStage.COMMITTED)
        logger.info("Order committed", order_id=str(order.id), total=order.total_price)
        return PlacementResult(result=Result.success(order), stages=tuple(self.stages))


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------
class OrderCommitCoordinator:
    def __init__(
        self,
        domain: Domain,
        validator: CatalogSnapshotValidator,
        pricing: PricingCalculator,
        ledger: InventoryLedger,
        orders: OrderStore,
        saga: ResourceCompensationSaga,
        customers: CustomerDirectory | None = None,
    ) -> None:
        self._domain = domain
        self._validator = validator
        self._pricing = pricing
        self._ledger = ledger
        self._orders = orders
        self._saga = saga
        self._customers = customers

    def place(self, submission: OrderSubmission) -> PlacementResult:
        tokens = add_context(customer_id=submission.customer_id, idempotency_key=submission.idempotency_key)
        try:
            with self._domain.domain_context():
                return self._place(submission)
        finally:
            clear_context(tokens)

    def _place(self, submission: OrderSubmission) -> PlacementResult:
        if submission.idempotency_key:
            existing = self._orders.find_by_idempotency_key(submission.idempotency_key)
            if existing is not None and existing.committed:
                logger.info("Replaying committed order", order_id=str(existing.id))
                return PlacementResult(
                    result=Result.success(existing),
                    stages=(PlacementStage.COMMITTED,),
                    replayed=True,
                )
            if existing is not None:
                logger.info("Placement with this key still in flight", order_id=str(existing.id))
                return PlacementResult(
                    result=Result.failure(
                        ErrorKind.CONFLICT,
                        "Order placement with this idempotency key is in progress",
                        idempotency_key=submission.idempotency_key,
                    ),
                    stages=(PlacementStage.FAILED,),
                )

        attempt = _Attempt()

        # -------------------------------------------------------------------
        # Validating
        # -------------------------------------------------------------------
        attempt.enter(PlacementStage.VALIDATING)
        malformed = self._check_submission(submission)
        if malformed is not None:
            return attempt.fail(malformed)

        customer = self._resolve_customer(submission)
        if not customer.ok:
            return attempt.fail(customer)

        validated = self._validator.validate(submission.items)
        if not validated.ok:
            return attempt.fail(validated)
        snapshot: ValidatedSnapshot = validated.value

        # -------------------------------------------------------------------
        # Pricing
        # -------------------------------------------------------------------
        attempt.enter(PlacementStage.PRICING)
        breakdown = self._pricing.total(snapshot.subtotal, submission.shipping_address.get("region"))
        if not within_tolerance(submission.payment.amount, breakdown.total):
            return attempt.fail(
                Result.failure(
                    ErrorKind.PAYMENT_AMOUNT_MISMATCH,
                    f"Payment amount mismatch. Expected: {breakdown.total}, Received: {submission.payment.amount}",
                    expected=str(breakdown.total),
                    received=str(to_decimal(submission.payment.amount)),
                )
            )

        acquired = self._saga.acquire([attachment.upload for attachment in submission.attachments])
        if not acquired.ok:
            return attempt.fail(acquired)
        refs: list[MediaRef] = acquired.value

        # -------------------------------------------------------------------
        # Persisting
        # -------------------------------------------------------------------
        attempt.enter(PlacementStage.PERSISTING)
        persisted = self._saga.commit(
            refs,
            lambda acquired_refs: self._persist(submission, snapshot, breakdown, customer.value, acquired_refs),
        )
        if not persisted.ok:
            return attempt.fail(persisted)
        order: Order = persisted.value

        # -------------------------------------------------------------------
        # Decrementing
        # -------------------------------------------------------------------
        attempt.enter(PlacementStage.DECREMENTING)
        movements = [StockMovement(product_id=item.product_id, quantity=item.quantity) for item in snapshot.items]
        decremented = self._ledger.decrement_all(movements)
        if not decremented.ok:
            return attempt.fail(self._undo_placement(order, refs, decremented))

        try:
            self._orders.mark_committed(order)
        except Exception as exc:
            # Stock is taken and the order stands; only replay of its key is lost.
            logger.error("Order committed but not marked", order_id=str(order.id), error=str(exc))
        return attempt.commit(order)

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _check_submission(self, submission: OrderSubmission) -> Result | None:
        address = submission.shipping_address or {}
        missing = [name for name in _REQUIRED_ADDRESS_FIELDS if not address.get(name)]
        if missing:
            return Result.failure(
                ErrorKind.INVALID_INPUT,
                "Shipping address is incomplete",
                missing_fields=missing,
            )

        payment = submission.payment
        if payment.method not in {method.value for method in PaymentMethod}:
            return Result.failure(
                ErrorKind.INVALID_INPUT,
                f"Unsupported payment method: {payment.method}",
                method=payment.method,
            )
        if payment.currency not in SUPPORTED_CURRENCIES:
            return Result.failure(
                ErrorKind.INVALID_INPUT,
                f"Unsupported currency: {payment.currency}",
                currency=payment.currency,
            )
        if not payment.transaction_id:
            return Result.failure(ErrorKind.INVALID_INPUT, "Payment transaction id is required")
        amount = to_decimal(payment.amount)
        if not amount.is_finite():
            return Result.failure(ErrorKind.INVALID_INPUT, "Payment amount must be a finite number")
        if amount < 0:
            return Result.failure(ErrorKind.INVALID_INPUT, "Payment amount cannot be negative")

        for attachment in submission.attachments:
            if attachment.product_id is not None and attachment.product_id not in {
                item.product_id for item in submission.items
            }:
                return Result.failure(
                    ErrorKind.INVALID_INPUT,
                    "Attachment refers to a product that is not in the order",
                    product_id=attachment.product_id,
                )
        return None

    def _resolve_customer(self, submission: OrderSubmission) -> Result[dict | None]:
        override = {k: v for k, v in (submission.customer or {}).items() if v}

        if not submission.customer_id:
            return Result.success(override or None)

        if not is_valid_id(submission.customer_id):
            return Result.failure(
                ErrorKind.INVALID_INPUT,
                "Invalid customer id format",
                customer_id=submission.customer_id,
            )

        if self._customers is None:
            return Result.success(override or None)

        profile = self._customers.get(submission.customer_id)
        if profile is None:
            return Result.failure(
                ErrorKind.NOT_FOUND,
                "User not found",
                customer_id=submission.customer_id,
            )

        return Result.success(
            {
                "name": override.get("name", profile.name),
                "email": override.get("email", profile.email),
                "phone": override.get("phone", profile.phone),
            }
        )

    def _persist(
        self,
        submission: OrderSubmission,
        snapshot: ValidatedSnapshot,
        breakdown: PriceBreakdown,
        customer: dict | None,
        refs: list[MediaRef],
    ) -> Result[Order]:
        product_for_ref = [attachment.product_id for attachment in submission.attachments]
        try:
            order = Order.place(
                items=[item.to_dict() for item in snapshot.items],
                shipping_address=submission.shipping_address,
                payment=submission.payment.to_dict(),
                pricing=breakdown.to_dict(),
                customer_id=submission.customer_id,
                customer=customer,
                attachments=[
                    {**ref.to_dict(), "product_id": product_id}
                    for ref, product_id in zip(refs, product_for_ref, strict=True)
                ],
                notes=submission.notes,
                idempotency_key=submission.idempotency_key,
            )
        except ValidationError as exc:
            return Result.failure(ErrorKind.INVALID_INPUT, "Order data is invalid", errors=exc.messages)

        try:
            self._orders.insert(order)
        except Exception as exc:
            logger.error("Order write failed", error=str(exc))
            return Result.failure(ErrorKind.STORAGE_FAILURE, "Failed to create order", reason=str(exc))
        return Result.success(order)

    def _undo_placement(self, order: Order, refs: list[MediaRef], decremented: Result) -> Result:
        """Remove the persisted order and its media after stock could not be committed.

        Stock already restored by the ledger is reported in ``decremented``.
        """
        report = decremented.compensation
        order_id = str(order.id)

        try:
            deleted = self._orders.delete(order_id)
        except Exception as exc:
            logger.critical("Order delete raised during compensation", order_id=order_id, error=str(exc))
            deleted = False

        report = report.merge(
            CompensationReport(
                attempted=(f"order:{order_id}",),
                failed=() if deleted else (f"order:{order_id}",),
            )
        )
        report = report.merge(self._saga.compensate(refs))

        if not deleted:
            logger.critical("Order record left behind after failed placement", order_id=order_id)
            return Result.failure(
                ErrorKind.COMPENSATION_FAILURE,
                "Order could not be removed after stock commit failed",
                compensation=report,
                order_id=order_id,
                cause=decremented.error.to_dict(),
            )

        return Result(error=decremented.error, compensation=report)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id: str) -> Result[Order]:
        with self._domain.domain_context():
            order = self._orders.find_by_id(order_id)
        if order is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"Order {order_id} not found", order_id=order_id)
        return Result.success(order)

    def orders_for_customer(self, customer_id: str, page=1, limit=10) -> Result:
        if not is_valid_id(customer_id):
            return Result.failure(ErrorKind.INVALID_INPUT, "Invalid user ID format", customer_id=customer_id)
        page, limit = clamp_page(page, limit)
        with self._domain.domain_context():
            return Result.success(self._orders.find_by_customer(customer_id, page, limit))
