"""BDD tests for order placement."""

from decimal import Decimal

from pytest_bdd import parsers, scenarios, then, when

from media import MediaUpload
from ordering.order.placement import AttachmentUpload
from ordering.order.validation import SubmittedItem

scenarios("features/order_placement.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('a customer orders {quantity:d} of "{product_id}" to "{region}" paying {amount}'),
    target_fixture="placement",
)
def _(coordinator, catalog, make_submission, quantity, product_id, region, amount):
    price = catalog.get_many([product_id])[product_id].price
    items = [SubmittedItem(product_id, quantity, price)]
    return coordinator.place(make_submission(items=items, amount=amount, region=region))


@when(
    parsers.cfparse(
        'a customer orders {quantity:d} of "{product_id}" with {files:d} artwork files to "{region}" paying {amount}'
    ),
    target_fixture="placement",
)
def _(coordinator, catalog, make_submission, quantity, product_id, region, amount, files):
    price = catalog.get_many([product_id])[product_id].price
    attachments = [AttachmentUpload(MediaUpload(b"art", f"art-{i}.png", "image/png")) for i in range(files)]
    return coordinator.place(
        make_submission(
            items=[SubmittedItem(product_id, quantity, price)],
            amount=amount,
            region=region,
            attachments=attachments,
        )
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {amount}"))
def _(placement, amount):
    assert Decimal(str(placement.order.total_price)) == Decimal(amount)


@then(parsers.cfparse("the shipping cost is {amount}"))
def _(placement, amount):
    assert Decimal(str(placement.order.shipping_cost)) == Decimal(amount)


@then(parsers.cfparse("the tax is {amount}"))
def _(placement, amount):
    assert Decimal(str(placement.order.tax_amount)) == Decimal(amount)
