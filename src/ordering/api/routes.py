"""FastAPI routes for the Ordering context: order placement and history."""

from fastapi import APIRouter, Request

from ordering.api.schemas import (
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
)
from shared.http import error_response, services_of

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
def place_order(body: PlaceOrderRequest, request: Request):
    """Validate, price and commit an order. Stock is decremented only on success."""
    placement = services_of(request).orders.place(body.to_submission())
    if not placement.ok:
        return error_response(placement.result)
    return PlaceOrderResponse(
        order=OrderResponse.from_order(placement.order),
        replayed=placement.replayed,
        stages=[stage.value for stage in placement.stages],
    )


@order_router.get("", response_model=OrderListResponse)
def list_orders(request: Request, customer_id: str, page: int = 1, limit: int = 10):
    result = services_of(request).orders.orders_for_customer(customer_id, page=page, limit=limit)
    if not result.ok:
        return error_response(result)
    found = result.value
    return OrderListResponse(
        orders=[OrderResponse.from_order(order) for order in found.items],
        total=found.total,
        page=found.page,
        limit=found.limit,
        total_pages=found.total_pages,
        has_next=found.has_next,
        has_prev=found.has_prev,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, request: Request):
    result = services_of(request).orders.get_order(order_id)
    if not result.ok:
        return error_response(result)
    return OrderResponse.from_order(result.value)
