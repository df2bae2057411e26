"""Pydantic request/response schemas for the Reviews API.

These are separate from the review service's arguments: the API layer is the
external contract, and photos arrive inline as base64.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ordering.api.schemas import ImageSchema
from reviews.review.review import Review


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateReviewRequest(BaseModel):
    user_id: str
    product_id: str
    rating: int
    comment: str
    images: list[ImageSchema] = Field(default_factory=list)


class UpdateReviewRequest(BaseModel):
    user_id: str
    role: str = "user"
    rating: int | None = None
    comment: str | None = None
    image_action: str = "add"  # "add" or "replace"
    images_to_delete: list[str] = Field(default_factory=list)
    images: list[ImageSchema] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ReviewImageResponse(BaseModel):
    public_id: str
    url: str
    format: str | None = None
    width: int | None = None
    height: int | None = None


class ReviewResponse(BaseModel):
    review_id: str
    user_id: str
    product_id: str
    rating: int
    comment: str
    images: list[ReviewImageResponse]
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_review(cls, review: Review) -> ReviewResponse:
        return cls(
            review_id=str(review.id),
            user_id=str(review.user_id),
            product_id=str(review.product_id),
            rating=review.rating,
            comment=review.comment,
            images=[ReviewImageResponse(**image) for image in review.image_refs()],
            created_at=review.created_at.isoformat() if review.created_at else None,
            updated_at=review.updated_at.isoformat() if review.updated_at else None,
        )


class ReviewStatsResponse(BaseModel):
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int]


class PaginationResponse(BaseModel):
    current_page: int
    total_pages: int
    total_reviews: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class ProductReviewsResponse(BaseModel):
    reviews: list[ReviewResponse]
    pagination: PaginationResponse
    stats: ReviewStatsResponse


class DeletedResponse(BaseModel):
    review_id: str
    status: str = "deleted"
