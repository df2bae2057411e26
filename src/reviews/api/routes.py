"""FastAPI routes for the Reviews context.

Each route translates between Pydantic schemas (external contract) and the
review service's arguments.
"""

from fastapi import APIRouter, Request

from reviews.api.schemas import (
    CreateReviewRequest,
    DeletedResponse,
    PaginationResponse,
    ProductReviewsResponse,
    ReviewResponse,
    ReviewStatsResponse,
    UpdateReviewRequest,
)
from shared.http import error_response, services_of
from shared.result import ErrorKind, Result

review_router = APIRouter(prefix="/reviews", tags=["reviews"])
product_review_router = APIRouter(prefix="/products", tags=["reviews"])


@review_router.post("", status_code=201, response_model=ReviewResponse)
def create_review(body: CreateReviewRequest, request: Request):
    """Submit a review, uploading any attached photos."""
    result = services_of(request).reviews.create_review(
        user_id=body.user_id,
        product_id=body.product_id,
        rating=body.rating,
        comment=body.comment,
        images=[image.to_upload() for image in body.images],
    )
    if not result.ok:
        return error_response(result)
    return ReviewResponse.from_review(result.value)


@review_router.put("/{review_id}", response_model=ReviewResponse)
def update_review(review_id: str, body: UpdateReviewRequest, request: Request):
    """Edit a review. ``image_action`` is either "add" or "replace"."""
    if body.role not in ("user", "admin") or body.image_action not in ("add", "replace"):
        return error_response(
            Result.failure(
                ErrorKind.INVALID_INPUT,
                "Unsupported role or image action",
                role=body.role,
                image_action=body.image_action,
            )
        )

    result = services_of(request).reviews.update_review(
        review_id=review_id,
        user_id=body.user_id,
        role=body.role,
        rating=body.rating,
        comment=body.comment,
        image_action=body.image_action,
        images_to_delete=body.images_to_delete,
        images=[image.to_upload() for image in body.images],
    )
    if not result.ok:
        return error_response(result)
    return ReviewResponse.from_review(result.value)


@review_router.delete("/{review_id}", response_model=DeletedResponse)
def delete_review(review_id: str, request: Request, user_id: str, role: str = "user"):
    if role not in ("user", "admin"):
        return error_response(Result.failure(ErrorKind.INVALID_INPUT, f"Unsupported role: {role}", role=role))

    result = services_of(request).reviews.delete_review(review_id, user_id, role=role)
    if not result.ok:
        return error_response(result)
    return DeletedResponse(review_id=result.value)


@product_review_router.get("/{product_id}/reviews", response_model=ProductReviewsResponse)
def product_reviews(
    product_id: str,
    request: Request,
    page: int = 1,
    limit: int = 10,
    sort: str = "newest",
    rating: int | None = None,
    has_images: bool = False,
):
    result = services_of(request).reviews.product_reviews(
        product_id,
        page=page,
        limit=limit,
        sort=sort,
        rating=rating,
        has_images=has_images,
    )
    if not result.ok:
        return error_response(result)

    listing = result.value
    return ProductReviewsResponse(
        reviews=[ReviewResponse.from_review(review) for review in listing.reviews],
        pagination=PaginationResponse(
            current_page=listing.current_page,
            total_pages=listing.total_pages,
            total_reviews=listing.total_reviews,
            limit=listing.limit,
            has_next_page=listing.has_next_page,
            has_prev_page=listing.has_prev_page,
        ),
        stats=ReviewStatsResponse(
            average_rating=listing.average_rating,
            total_reviews=sum(listing.rating_distribution.values()),
            rating_distribution=listing.rating_distribution,
        ),
    )
