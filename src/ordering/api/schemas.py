"""Pydantic request/response schemas for the Ordering API.

These are external contracts, separate from the placement submission types.
"""

import base64
import binascii
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from media.port import MediaUpload
from ordering.order.order import Order
from ordering.order.placement import AttachmentUpload, OrderSubmission, PaymentDetails
from ordering.order.validation import SubmittedItem


def decode_base64(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("content must be base64 encoded") from exc


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    address_line1: str
    city: str
    region: str
    postal_code: str
    phone: str | None = None


class CustomerSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    quantity: int
    price: Decimal


class PaymentSchema(BaseModel):
    method: str
    transaction_id: str
    amount: Decimal
    currency: str = "INR"


class ImageSchema(BaseModel):
    """An image sent inline as base64."""

    content: str
    filename: str = "upload"
    content_type: str = "image/jpeg"

    @field_validator("content")
    @classmethod
    def content_is_base64(cls, value: str) -> str:
        decode_base64(value)
        return value

    def to_upload(self) -> MediaUpload:
        return MediaUpload(
            content=decode_base64(self.content),
            filename=self.filename,
            content_type=self.content_type,
        )


class AttachmentSchema(ImageSchema):
    product_id: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    items: list[OrderItemSchema]
    shipping_address: ShippingAddressSchema
    payment: PaymentSchema
    customer_id: str | None = None
    customer: CustomerSchema | None = None
    attachments: list[AttachmentSchema] = Field(default_factory=list)
    notes: str | None = None
    idempotency_key: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "poster-001", "quantity": 2, "price": 100.0}],
                    "shipping_address": {
                        "address_line1": "12 Janpath",
                        "city": "New Delhi",
                        "region": "Delhi",
                        "postal_code": "110001",
                        "phone": "9876543210",
                    },
                    "payment": {
                        "method": "ONLINE",
                        "transaction_id": "txn_001",
                        "amount": 286.0,
                        "currency": "INR",
                    },
                }
            ]
        }
    }

    def to_submission(self) -> OrderSubmission:
        return OrderSubmission(
            items=[
                SubmittedItem(product_id=item.product_id, quantity=item.quantity, client_price=item.price)
                for item in self.items
            ],
            shipping_address=self.shipping_address.model_dump(),
            payment=PaymentDetails(
                method=self.payment.method,
                transaction_id=self.payment.transaction_id,
                amount=self.payment.amount,
                currency=self.payment.currency,
            ),
            customer_id=self.customer_id,
            customer=self.customer.model_dump() if self.customer else None,
            attachments=[
                AttachmentUpload(upload=attachment.to_upload(), product_id=attachment.product_id)
                for attachment in self.attachments
            ],
            notes=self.notes,
            idempotency_key=self.idempotency_key,
        )


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str
    title: str | None = None
    quantity: int
    unit_price: float


class AttachmentResponse(BaseModel):
    public_id: str
    url: str
    format: str | None = None
    width: int | None = None
    height: int | None = None
    product_id: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str | None = None
    customer: CustomerSchema | None = None
    items: list[OrderItemResponse]
    shipping_address: ShippingAddressSchema
    payment: PaymentSchema
    status: str
    is_paid: bool
    subtotal: float
    shipping_cost: float
    tax_amount: float
    total_price: float
    notes: str | None = None
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    created_at: str | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        customer = order.customer
        address = order.shipping_address
        payment = order.payment
        return cls(
            order_id=str(order.id),
            customer_id=str(order.customer_id) if order.customer_id else None,
            customer=(
                CustomerSchema(name=customer.name, email=customer.email, phone=customer.phone)
                if customer
                else None
            ),
            items=[
                OrderItemResponse(
                    product_id=str(item.product_id),
                    title=item.title,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in order.items
            ],
            shipping_address=ShippingAddressSchema(
                address_line1=address.address_line1,
                city=address.city,
                region=address.region,
                postal_code=address.postal_code,
                phone=address.phone,
            ),
            payment=PaymentSchema(
                method=payment.method,
                transaction_id=payment.transaction_id,
                amount=Decimal(str(payment.amount)),
                currency=payment.currency,
            ),
            status=order.status,
            is_paid=order.is_paid,
            subtotal=order.subtotal,
            shipping_cost=order.shipping_cost,
            tax_amount=order.tax_amount,
            total_price=order.total_price,
            notes=order.notes,
            attachments=[
                AttachmentResponse(
                    public_id=attachment.public_id,
                    url=attachment.url,
                    format=attachment.format,
                    width=attachment.width,
                    height=attachment.height,
                    product_id=str(attachment.product_id) if attachment.product_id else None,
                )
                for attachment in order.attachments
            ],
            created_at=order.created_at.isoformat() if order.created_at else None,
        )


class PlaceOrderResponse(BaseModel):
    order: OrderResponse
    replayed: bool = False
    stages: list[str]


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool
