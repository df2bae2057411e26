"""Review persistence port and its Protean-backed adapter."""

import threading
from abc import ABC, abstractmethod

from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError

from reviews.review.review import Review

SORT_ORDERS = {
    "newest": ["-created_at"],
    "oldest": ["created_at"],
    "highest": ["-rating", "-created_at"],
    "lowest": ["rating", "-created_at"],
}


class DuplicateReviewError(Exception):
    """A different review already exists for the same user and product."""


class ReviewStore(ABC):
    @abstractmethod
    def add(self, review: Review) -> None: ...

    @abstractmethod
    def get(self, review_id: str) -> Review | None: ...

    @abstractmethod
    def find_by_user_and_product(self, user_id: str, product_id: str) -> Review | None: ...

    @abstractmethod
    def delete(self, review: Review) -> None: ...

    @abstractmethod
    def page(
        self,
        product_id: str,
        offset: int,
        limit: int,
        sort: str = "newest",
        rating: int | None = None,
        has_images: bool = False,
    ) -> tuple[list[Review], int]:
        """Return one page of matching reviews and the total match count."""
        ...

    @abstractmethod
    def rating_counts(self, product_id: str) -> dict[int, int]: ...


class ProteanReviewStore(ReviewStore):
    def __init__(self, domain: Domain) -> None:
        self._domain = domain
        self._write_lock = threading.Lock()

    def _repo(self):
        return self._domain.repository_for(Review)

    def add(self, review: Review) -> None:
        """Insert or update a review, keeping one review per user and product."""
        with self._write_lock:
            existing = self.find_by_user_and_product(review.user_id, review.product_id)
            if existing is not None and existing.id != review.id:
                raise DuplicateReviewError(f"User {review.user_id} already reviewed product {review.product_id}")
            with self._domain.domain_context():
                self._repo().add(review)

    def get(self, review_id: str) -> Review | None:
        with self._domain.domain_context():
            try:
                return self._repo().get(review_id)
            except ObjectNotFoundError:
                return None

    def find_by_user_and_product(self, user_id: str, product_id: str) -> Review | None:
        with self._domain.domain_context():
            results = self._repo()._dao.query.filter(user_id=str(user_id), product_id=str(product_id)).all()
        return results.items[0] if results.items else None

    def delete(self, review: Review) -> None:
        with self._domain.domain_context():
            self._repo()._dao.delete(review)

    def page(self, product_id, offset, limit, sort="newest", rating=None, has_images=False):
        filters = {"product_id": str(product_id)}
        if rating is not None:
            filters["rating"] = rating
        if has_images:
            filters["image_count__gt"] = 0

        with self._domain.domain_context():
            results = (
                self._repo()
                ._dao.query.filter(**filters)
                .order_by(SORT_ORDERS.get(sort, SORT_ORDERS["newest"]))
                .offset(offset)
                .limit(limit)
                .all()
            )
        return list(results.items), results.total

    def rating_counts(self, product_id: str) -> dict[int, int]:
        counts = {}
        with self._domain.domain_context():
            for score in range(1, 6):
                results = self._repo()._dao.query.filter(product_id=str(product_id), rating=score).limit(1).all()
                counts[score] = results.total
        return counts
