"""Order aggregate: the record written by order placement.

Not event sourced: an order is written once by placement, marked committed
once its stock has been taken, and afterwards only moves through fulfillment
statuses, which happen outside this service.

Invariants (checked whenever the aggregate is built or changed):
    total_price == sum(unit_price * quantity) + shipping_cost + tax_amount
    payment.amount == total_price
both within the 0.01 money tolerance.

Status:
    PENDING (cash on delivery) | PROCESSING (paid online) →
    SHIPPED → DELIVERED; CANCELLED before shipping
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from shared.money import SUPPORTED_CURRENCIES, to_decimal, within_tolerance


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(Enum):
    ONLINE = "ONLINE"
    COD = "COD"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class CustomerInfo:
    """Contact details captured at checkout."""

    name = String(max_length=100)
    email = String(max_length=255)
    phone = String(max_length=20)


@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address. ``region`` drives the remote-area shipping surcharge."""

    address_line1 = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    region = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    phone = String(max_length=20)


@ordering.value_object(part_of="Order")
class PaymentRecord:
    method = String(required=True, choices=PaymentMethod)
    transaction_id = String(required=True, max_length=255)
    amount = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)

    @invariant.post
    def currency_must_be_supported(self):
        if self.currency is not None and self.currency not in SUPPORTED_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line item. ``unit_price`` is always the catalogue-confirmed price."""

    product_id = Identifier(required=True)
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


@ordering.entity(part_of="Order")
class OrderAttachment:
    """An image uploaded with the order, e.g. artwork for a custom print."""

    public_id = String(required=True, max_length=255)
    url = String(required=True, max_length=500)
    format = String(max_length=20)
    width = Integer()
    height = Integer()
    product_id = Identifier()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier()
    customer = ValueObject(CustomerInfo)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress, required=True)
    payment = ValueObject(PaymentRecord, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    is_paid = Boolean(default=False)
    subtotal = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    tax_amount = Float(default=0.0)
    total_price = Float(default=0.0)
    notes = Text()
    attachments = HasMany(OrderAttachment)
    idempotency_key = String(max_length=255)
    committed = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def must_have_at_least_one_item(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @invariant.post
    def total_must_match_components(self):
        items_total = sum(
            (to_decimal(item.unit_price) * item.quantity for item in self.items),
            start=to_decimal(0),
        )
        expected = items_total + to_decimal(self.shipping_cost or 0) + to_decimal(self.tax_amount or 0)
        if not within_tolerance(expected, self.total_price or 0):
            raise ValidationError(
                {"total_price": [f"Total {self.total_price} does not match items, shipping and tax ({expected})"]}
            )

    @invariant.post
    def payment_must_cover_total(self):
        if self.payment is None:
            return
        if not within_tolerance(self.payment.amount, self.total_price or 0):
            raise ValidationError(
                {"payment": [f"Payment amount {self.payment.amount} does not match total {self.total_price}"]}
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        items,
        shipping_address,
        payment,
        pricing,
        customer_id=None,
        customer=None,
        attachments=None,
        notes=None,
        idempotency_key=None,
    ):
        """Build a new order from validated, server-priced data.

        Args:
            items: List of dicts with product_id, title, quantity, unit_price.
            shipping_address: Dict with address_line1, city, region, postal_code, phone.
            payment: Dict with method, transaction_id, amount, currency.
            pricing: Dict with subtotal, shipping_cost, tax_amount, total_price.
            customer: Optional dict with name, email, phone.
            attachments: Optional list of dicts with public_id, url, format,
                         width, height, product_id.
        """
        now = datetime.now(UTC)
        method = PaymentMethod(payment["method"])
        status = OrderStatus.PENDING if method == PaymentMethod.COD else OrderStatus.PROCESSING

        return cls(
            customer_id=str(customer_id) if customer_id else None,
            customer=CustomerInfo(**customer) if customer else None,
            items=[OrderItem(**item) for item in items],
            shipping_address=ShippingAddress(**shipping_address),
            payment=PaymentRecord(**payment),
            status=status.value,
            is_paid=method != PaymentMethod.COD,
            subtotal=float(pricing["subtotal"]),
            shipping_cost=float(pricing["shipping_cost"]),
            tax_amount=float(pricing["tax_amount"]),
            total_price=float(pricing["total_price"]),
            notes=notes,
            attachments=[OrderAttachment(**attachment) for attachment in attachments or []],
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )

    def mark_committed(self):
        """Stock for every line has been taken; the order may now be replayed."""
        self.committed = True
        self.updated_at = datetime.now(UTC)

    def recomputed_total(self):
        """Total recomputed from the persisted components."""
        items_total = sum(
            (to_decimal(item.unit_price) * item.quantity for item in self.items),
            start=to_decimal(0),
        )
        return items_total + to_decimal(self.shipping_cost) + to_decimal(self.tax_amount)
