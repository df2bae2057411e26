"""Review mutations and listings.

Every mutation that touches photos follows the same shape:

1. checks that need no side effects (ids, ownership, one review per
   product, image count) run first;
2. new photos are acquired through the compensation saga;
3. the review is written, and the new photos are deleted again if the
   write fails;
4. photos the review no longer references are released only after the
   write has succeeded.
"""

from dataclasses import dataclass

from protean.domain import Domain
from protean.exceptions import ValidationError

from catalogue.port import CatalogReader
from media.port import MediaRef, MediaUpload
from media.saga import ResourceCompensationSaga
from ordering.order.validation import is_valid_id
from reviews.review.review import MAX_IMAGES, ImageAction, Review, UserRole
from reviews.review.store import SORT_ORDERS, DuplicateReviewError, ReviewStore
from shared.logging import get_logger
from shared.result import ErrorKind, Result

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ReviewPage:
    reviews: list[Review]
    current_page: int
    total_reviews: int
    limit: int
    average_rating: float
    rating_distribution: dict[int, int]

    @property
    def total_pages(self) -> int:
        return (self.total_reviews + self.limit - 1) // self.limit

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1


def _ref_from(image: dict) -> MediaRef:
    return MediaRef(**image)


def _check_content(rating, comment) -> Result | None:
    if rating is not None and (not isinstance(rating, int) or not 1 <= rating <= 5):
        return Result.failure(ErrorKind.INVALID_INPUT, "Rating must be between 1 and 5", rating=rating)
    if comment is not None and not comment.strip():
        return Result.failure(ErrorKind.INVALID_INPUT, "Review comment cannot be empty")
    return None


class ReviewService:
    def __init__(
        self,
        domain: Domain,
        reviews: ReviewStore,
        saga: ResourceCompensationSaga,
        catalog: CatalogReader | None = None,
    ) -> None:
        self._domain = domain
        self._reviews = reviews
        self._saga = saga
        self._catalog = catalog

    # -------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------
    def create_review(self, user_id, product_id, rating, comment, images: list[MediaUpload] = ()) -> Result[Review]:
        if not is_valid_id(user_id) or not is_valid_id(product_id):
            return Result.failure(ErrorKind.INVALID_INPUT, "Invalid User ID or Product ID format.")
        if rating is None or comment is None:
            return Result.failure(ErrorKind.INVALID_INPUT, "Rating and comment are required")
        bad_content = _check_content(rating, comment)
        if bad_content is not None:
            return bad_content
        if len(images) > MAX_IMAGES:
            return Result.failure(
                ErrorKind.INVALID_INPUT,
                f"Maximum {MAX_IMAGES} images allowed per review",
                received=len(images),
            )

        if self._catalog is not None and product_id not in self._catalog.get_many([product_id]):
            return Result.failure(ErrorKind.NOT_FOUND, f"Product {product_id} not found", product_id=product_id)

        with self._domain.domain_context():
            if self._reviews.find_by_user_and_product(user_id, product_id) is not None:
                return Result.failure(
                    ErrorKind.CONFLICT,
                    "You have already reviewed this product. You can only submit one review per product.",
                    product_id=product_id,
                )

            acquired = self._saga.acquire(list(images))
            if not acquired.ok:
                return acquired

            result = self._saga.commit(
                acquired.value,
                lambda refs: self._save(
                    lambda: Review.create(
                        user_id=user_id,
                        product_id=product_id,
                        rating=rating,
                        comment=comment,
                        images=[ref.to_dict() for ref in refs],
                    )
                ),
            )

        if result.ok:
            logger.info("Review created", review_id=str(result.value.id), image_count=len(acquired.value))
        return result

    # -------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------
    def update_review(
        self,
        review_id,
        user_id,
        role=UserRole.USER,
        rating=None,
        comment=None,
        image_action=ImageAction.ADD,
        images_to_delete=(),
        images: list[MediaUpload] = (),
    ) -> Result[Review]:
        if not is_valid_id(review_id) or not is_valid_id(user_id):
            return Result.failure(ErrorKind.INVALID_INPUT, "Invalid User ID or Review ID format.")
        bad_content = _check_content(rating, comment)
        if bad_content is not None:
            return bad_content

        role = UserRole(role)
        image_action = ImageAction(image_action)

        with self._domain.domain_context():
            review = self._reviews.get(review_id)
            if review is None:
                return Result.failure(ErrorKind.NOT_FOUND, "Review not found.", review_id=review_id)
            if role != UserRole.ADMIN and not review.is_owned_by(user_id):
                return Result.failure(ErrorKind.FORBIDDEN, "You can only update your own reviews.")

            existing = review.image_refs()
            if image_action == ImageAction.REPLACE:
                kept, superseded = [], existing
            else:
                to_delete = set(images_to_delete or ())
                unknown = to_delete - {image["public_id"] for image in existing}
                if unknown:
                    return Result.failure(
                        ErrorKind.INVALID_INPUT,
                        "Images to delete do not belong to this review",
                        public_ids=sorted(unknown),
                    )
                kept = [image for image in existing if image["public_id"] not in to_delete]
                superseded = [image for image in existing if image["public_id"] in to_delete]

            if len(kept) + len(images) > MAX_IMAGES:
                return Result.failure(
                    ErrorKind.INVALID_INPUT,
                    f"Maximum {MAX_IMAGES} images allowed per review",
                    kept=len(kept),
                    added=len(images),
                )

            acquired = self._saga.acquire(list(images))
            if not acquired.ok:
                return acquired

            def revise(refs):
                def apply():
                    review.revise(
                        rating=rating,
                        comment=comment,
                        images=kept + [ref.to_dict() for ref in refs],
                    )
                    return review

                return self._save(apply)

            result = self._saga.commit(acquired.value, revise)

        if not result.ok:
            return result

        released = self._saga.release([_ref_from(image) for image in superseded])
        logger.info(
            "Review updated",
            review_id=str(review_id),
            action=image_action.value,
            added=len(acquired.value),
            released=len(superseded),
        )
        return result.with_compensation(released)

    # -------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------
    def delete_review(self, review_id, user_id, role=UserRole.USER) -> Result[str]:
        if not is_valid_id(review_id):
            return Result.failure(ErrorKind.INVALID_INPUT, "Invalid Review ID format.")
        role = UserRole(role)

        with self._domain.domain_context():
            review = self._reviews.get(review_id)
            if review is None:
                return Result.failure(ErrorKind.NOT_FOUND, "Review not found.", review_id=review_id)
            if role != UserRole.ADMIN and not review.is_owned_by(user_id):
                return Result.failure(ErrorKind.FORBIDDEN, "You can only delete your own reviews.")

            refs = [_ref_from(image) for image in review.image_refs()]
            try:
                self._reviews.delete(review)
            except Exception as exc:
                logger.error("Review delete failed", review_id=str(review_id), error=str(exc))
                return Result.failure(ErrorKind.STORAGE_FAILURE, "Failed to delete review", reason=str(exc))

        report = self._saga.release(refs)
        logger.info("Review deleted", review_id=str(review_id), released=len(refs))
        return Result.success(str(review_id), compensation=report)

    # -------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------
    def product_reviews(
        self,
        product_id,
        page=1,
        limit=DEFAULT_PAGE_SIZE,
        sort="newest",
        rating=None,
        has_images=False,
    ) -> Result[ReviewPage]:
        if not is_valid_id(product_id):
            return Result.failure(ErrorKind.INVALID_INPUT, "Invalid Product ID format.")

        page = max(1, int(page or 1))
        if limit is None or limit < 1 or limit > MAX_PAGE_SIZE:
            limit = DEFAULT_PAGE_SIZE
        if sort not in SORT_ORDERS:
            sort = "newest"
        if rating is not None and not 1 <= rating <= 5:
            rating = None

        with self._domain.domain_context():
            items, total = self._reviews.page(
                product_id,
                offset=(page - 1) * limit,
                limit=limit,
                sort=sort,
                rating=rating,
                has_images=has_images,
            )
            distribution = self._reviews.rating_counts(product_id)

        rated = sum(distribution.values())
        average = sum(score * count for score, count in distribution.items()) / rated if rated else 0.0

        return Result.success(
            ReviewPage(
                reviews=items,
                current_page=page,
                total_reviews=total,
                limit=limit,
                average_rating=round(average, 2),
                rating_distribution=distribution,
            )
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _save(self, build) -> Result[Review]:
        try:
            review = build()
        except ValidationError as exc:
            return Result.failure(ErrorKind.INVALID_INPUT, "Review data is invalid", errors=exc.messages)

        try:
            self._reviews.add(review)
        except DuplicateReviewError:
            return Result.failure(
                ErrorKind.CONFLICT,
                "You have already reviewed this product. You can only submit one review per product.",
                product_id=review.product_id,
            )
        except Exception as exc:
            logger.error("Review write failed", error=str(exc))
            return Result.failure(ErrorKind.STORAGE_FAILURE, "Failed to save review", reason=str(exc))
        return Result.success(review)
