"""Review aggregate: one customer's review of one product.

A customer may review a product once. Photos are stored on the media host;
the aggregate only keeps their references (public id, URL, format and
dimensions) and never more than five of them.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from reviews.domain import reviews

MAX_IMAGES = 5

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"


class ImageAction(Enum):
    ADD = "add"
    REPLACE = "replace"


@reviews.entity(part_of="Review")
class ReviewImage:
    """A photo attached to a review."""

    public_id = String(required=True, max_length=255)
    url = String(required=True, max_length=500)
    format = String(max_length=20)
    width = Integer()
    height = Integer()


@reviews.aggregate
class Review:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    rating = Integer(required=True)
    comment = Text(required=True)
    images = HasMany(ReviewImage)
    image_count = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def images_cannot_exceed_maximum(self):
        if len(self.images) > MAX_IMAGES:
            raise ValidationError({"images": [f"Maximum {MAX_IMAGES} images allowed per review"]})

    @invariant.post
    def rating_must_be_in_range(self):
        if self.rating is not None and not 1 <= self.rating <= 5:
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})

    @invariant.post
    def comment_must_not_be_empty(self):
        if self.comment is not None and len(self.comment.strip()) == 0:
            raise ValidationError({"comment": ["Review comment cannot be empty"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, product_id, rating, comment, images=None):
        """Create a review with already uploaded images (list of dicts)."""
        now = datetime.now(UTC)
        images = images or []
        return cls(
            user_id=str(user_id),
            product_id=str(product_id),
            rating=rating,
            comment=comment,
            images=[ReviewImage(**image) for image in images],
            image_count=len(images),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------
    def revise(self, rating=_UNSET, comment=_UNSET, images=_UNSET):
        """Update content and, when given, swap the image set for ``images``."""
        with atomic_change(self):
            if rating is not _UNSET and rating is not None:
                self.rating = rating
            if comment is not _UNSET and comment is not None:
                self.comment = comment

            if images is not _UNSET:
                wanted = {image["public_id"]: image for image in images}
                for current in list(self.images):
                    if current.public_id not in wanted:
                        self.remove_images(current)
                present = {current.public_id for current in self.images}
                for public_id, image in wanted.items():
                    if public_id not in present:
                        self.add_images(ReviewImage(**image))
                self.image_count = len(wanted)

            self.updated_at = datetime.now(UTC)

    def image_refs(self) -> list[dict]:
        return [
            {
                "public_id": image.public_id,
                "url": image.url,
                "format": image.format,
                "width": image.width,
                "height": image.height,
            }
            for image in self.images
        ]

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)
