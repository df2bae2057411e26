"""Shared BDD step definitions for review photos."""

from pytest_bdd import given, parsers, then


@given(parsers.cfparse("the media host rejects upload number {call:d}"))
def _(media, call):
    media.configure(fail_uploads={call})


@given(
    parsers.cfparse('"{user_id}" has reviewed "{product_id}" with {count:d} photos'),
    target_fixture="review",
)
def _(service, photos, user_id, product_id, count):
    result = service.create_review(
        user_id=user_id,
        product_id=product_id,
        rating=4,
        comment="Bright colours and thick paper.",
        images=photos(count, "before"),
    )
    assert result.ok, result.error
    return result.value


@then("the request succeeds")
def _(outcome):
    assert outcome.ok, outcome.error


@then(parsers.cfparse('the request fails as "{kind}"'))
def _(outcome, kind):
    assert not outcome.ok
    assert outcome.error.kind.value == kind


@then(parsers.cfparse("the media host holds {count:d} files"))
def _(media, count):
    assert len(media.stored_ids) == count
