"""Application tests for placing orders through the commit coordinator."""

from decimal import Decimal

import structlog

from media import MediaUpload
from ordering.order.order import OrderStatus
from ordering.order.placement import AttachmentUpload, PaymentDetails, PlacementStage
from ordering.order.validation import SubmittedItem
from shared.result import ErrorKind


class TestSuccessfulPlacement:
    def test_delhi_order_commits_and_decrements_stock(self, coordinator, catalog, order_store, make_submission):
        placement = coordinator.place(make_submission())

        assert placement.ok
        order = placement.order
        assert order.subtotal == 200.0
        assert order.shipping_cost == 50.0
        assert order.tax_amount == 36.0
        assert order.total_price == 286.0
        assert order.status == OrderStatus.PROCESSING.value
        assert order.is_paid
        assert catalog.stock_of("poster-001") == 3
        assert order_store.find_by_id(str(order.id)) is not None

    def test_stage_trace(self, coordinator, make_submission):
        placement = coordinator.place(make_submission())
        assert placement.stages == (
            PlacementStage.VALIDATING,
            PlacementStage.PRICING,
            PlacementStage.PERSISTING,
            PlacementStage.DECREMENTING,
            PlacementStage.COMMITTED,
        )
        assert placement.final_stage == PlacementStage.COMMITTED

    def test_cash_on_delivery_is_pending(self, coordinator, make_submission):
        placement = coordinator.place(make_submission(method="COD"))
        assert placement.order.status == OrderStatus.PENDING.value
        assert not placement.order.is_paid

    def test_stored_prices_are_the_catalogue_prices(self, coordinator, make_submission):
        items = [
            SubmittedItem("poster-001", 1, Decimal("100.01")),
            SubmittedItem("poster-002", 2, Decimal("75.50")),
        ]
        # 251.00 subtotal ships free; tax 45.18
        placement = coordinator.place(make_submission(items=items, amount="296.18"))

        assert placement.ok
        assert [item.unit_price for item in placement.order.items] == [100.0, 75.5]
        assert placement.order.shipping_cost == 0.0

    def test_remote_region_pays_surcharge(self, coordinator, make_submission):
        placement = coordinator.place(make_submission(region="Ladakh", amount="436.00"))
        assert placement.ok
        assert placement.order.shipping_cost == 200.0

    def test_customer_profile_fills_contact_details(self, coordinator, make_submission):
        placement = coordinator.place(make_submission(customer_id="cust-001", customer={"phone": "9111111111"}))

        assert placement.ok
        assert placement.order.customer.name == "Asha Rao"
        assert placement.order.customer.email == "asha@example.com"
        assert placement.order.customer.phone == "9111111111"

    def test_attachments_are_uploaded_and_kept(self, coordinator, media, make_submission):
        attachments = [
            AttachmentUpload(MediaUpload(b"art", "custom.png", "image/png"), product_id="poster-001"),
        ]
        placement = coordinator.place(make_submission(attachments=attachments))

        assert placement.ok
        attachment = placement.order.attachments[0]
        assert str(attachment.product_id) == "poster-001"
        assert media.stored_ids == {attachment.public_id}

    def test_log_context_is_restored_after_placement(self, coordinator, make_submission):
        structlog.contextvars.clear_contextvars()

        coordinator.place(make_submission(idempotency_key="checkout-5"))

        assert structlog.contextvars.get_contextvars() == {}


class TestRejectedPlacement:
    def test_underpayment_changes_nothing(self, coordinator, catalog, order_store, make_submission):
        placement = coordinator.place(make_submission(amount="280.00"))

        assert not placement.ok
        assert placement.error.kind == ErrorKind.PAYMENT_AMOUNT_MISMATCH
        assert placement.error.details == {"expected": "286.00", "received": "280.00"}
        assert placement.final_stage == PlacementStage.FAILED
        assert PlacementStage.PERSISTING not in placement.stages
        assert catalog.stock_of("poster-001") == 5
        assert len(order_store) == 0

    def test_price_mismatch(self, coordinator, catalog, make_submission):
        items = [SubmittedItem("poster-001", 2, Decimal("90.00"))]
        placement = coordinator.place(make_submission(items=items))

        assert placement.error.kind == ErrorKind.PRICE_MISMATCH
        assert catalog.stock_of("poster-001") == 5

    def test_insufficient_stock(self, coordinator, make_submission):
        items = [SubmittedItem("poster-003", 2, Decimal("300.00"))]
        placement = coordinator.place(make_submission(items=items, amount="708.00"))

        assert placement.error.kind == ErrorKind.INSUFFICIENT_STOCK
        assert placement.error.details["available"] == 1

    def test_unknown_customer(self, coordinator, order_store, make_submission):
        placement = coordinator.place(make_submission(customer_id="cust-404"))

        assert placement.error.kind == ErrorKind.NOT_FOUND
        assert placement.error.message == "User not found"
        assert len(order_store) == 0

    def test_incomplete_address(self, coordinator, make_submission):
        submission = make_submission(shipping_address={"address_line1": "12 Janpath", "city": "New Delhi"})
        placement = coordinator.place(submission)

        assert placement.error.kind == ErrorKind.INVALID_INPUT
        assert placement.error.details["missing_fields"] == ["region", "postal_code"]

    def test_unsupported_payment_method(self, coordinator, make_submission):
        placement = coordinator.place(make_submission(method="CHEQUE"))
        assert placement.error.kind == ErrorKind.INVALID_INPUT

    def test_non_finite_payment_amount(self, coordinator, catalog, make_submission):
        payment = PaymentDetails(method="ONLINE", transaction_id="txn-001", amount=float("nan"), currency="INR")

        placement = coordinator.place(make_submission(payment=payment))

        assert placement.error.kind == ErrorKind.INVALID_INPUT
        assert catalog.stock_of("poster-001") == 5

    def test_non_finite_item_price(self, coordinator, make_submission):
        items = [SubmittedItem(product_id="poster-001", quantity=2, client_price=float("inf"))]
        placement = coordinator.place(make_submission(items=items))
        assert placement.error.kind == ErrorKind.INVALID_INPUT

    def test_attachment_for_a_product_not_in_the_order(self, coordinator, media, make_submission):
        attachments = [AttachmentUpload(MediaUpload(b"art", "custom.png", "image/png"), product_id="poster-002")]
        placement = coordinator.place(make_submission(attachments=attachments))

        assert placement.error.kind == ErrorKind.INVALID_INPUT
        assert media.calls == []

    def test_failed_attachment_upload_leaves_no_order_or_media(
        self, coordinator, catalog, media, order_store, make_submission
    ):
        media.configure(fail_uploads={2})
        attachments = [AttachmentUpload(MediaUpload(b"art", f"art-{i}.png", "image/png")) for i in range(3)]

        placement = coordinator.place(make_submission(attachments=attachments))

        assert placement.error.kind == ErrorKind.STORAGE_FAILURE
        assert media.stored_ids == set()
        assert len(order_store) == 0
        assert catalog.stock_of("poster-001") == 5


class TestIdempotentReplay:
    def test_same_key_returns_the_committed_order(self, coordinator, catalog, order_store, make_submission):
        first = coordinator.place(make_submission(idempotency_key="checkout-42"))
        second = coordinator.place(make_submission(idempotency_key="checkout-42"))

        assert first.ok and second.ok
        assert first.order.committed
        assert second.replayed
        assert str(second.order.id) == str(first.order.id)
        assert catalog.stock_of("poster-001") == 3
        assert len(order_store) == 1

    def test_different_keys_place_separate_orders(self, coordinator, catalog, make_submission):
        coordinator.place(make_submission(idempotency_key="checkout-1"))
        coordinator.place(make_submission(idempotency_key="checkout-2"))
        assert catalog.stock_of("poster-001") == 1

    def test_retry_while_first_attempt_is_in_flight_is_refused(
        self, coordinator, catalog, order_store, make_submission, monkeypatch
    ):
        submission = make_submission(idempotency_key="checkout-77")
        retries = []
        decrement = catalog.decrement_if_available

        def decrement_after_retry(product_id, quantity):
            if not retries:
                retries.append(coordinator.place(submission))
                catalog.remove_product(product_id)
            return decrement(product_id, quantity)

        monkeypatch.setattr(catalog, "decrement_if_available", decrement_after_retry)

        first = coordinator.place(submission)

        retry = retries[0]
        assert not retry.ok
        assert not retry.replayed
        assert retry.error.kind == ErrorKind.CONFLICT
        assert first.error.kind == ErrorKind.INSUFFICIENT_STOCK
        assert len(order_store) == 0

    def test_unmarked_order_is_not_replayed(self, coordinator, catalog, order_store, make_submission):
        order_store.fail_commits = True

        first = coordinator.place(make_submission(idempotency_key="checkout-88"))
        retry = coordinator.place(make_submission(idempotency_key="checkout-88"))

        assert first.ok
        assert not first.order.committed
        assert retry.error.kind == ErrorKind.CONFLICT
        assert catalog.stock_of("poster-001") == 3
        assert len(order_store) == 1


class TestQueries:
    def test_get_order(self, coordinator, make_submission):
        placed = coordinator.place(make_submission())
        assert str(coordinator.get_order(str(placed.order.id)).value.id) == str(placed.order.id)

    def test_get_missing_order(self, coordinator):
        assert coordinator.get_order("missing-order").error.kind == ErrorKind.NOT_FOUND

    def test_orders_for_customer_are_paged(self, coordinator, catalog, make_submission):
        catalog.add_product("poster-001", "Starry Night", Decimal("100.00"), stock=100)
        for _ in range(3):
            coordinator.place(make_submission(customer_id="cust-001"))

        page = coordinator.orders_for_customer("cust-001", page=1, limit=2).value

        assert page.total == 3
        assert len(page.items) == 2
        assert page.total_pages == 2
        assert page.has_next
        assert not page.has_prev

    def test_history_limits_are_clamped(self, coordinator):
        page = coordinator.orders_for_customer("cust-001", page=0, limit=500).value
        assert page.page == 1
        assert page.limit == 50

    def test_history_rejects_malformed_customer_id(self, coordinator):
        assert coordinator.orders_for_customer("bad id").error.kind == ErrorKind.INVALID_INPUT
