"""Reviews bounded context: product reviews with attached photos.

Handles review creation, editing (including image replace/add), deletion
and product review listings. Photos live on the media host; every mutation
that touches them goes through the media compensation saga.
"""

from protean.domain import Domain

from shared.logging import get_logger

reviews = Domain(name="reviews")

logger = get_logger(__name__)
