"""Media host integration.

Provides the MediaStore port, the FakeMediaStore used in development and
tests, and the compensation saga shared by orders and reviews.
"""

from media.fake_adapter import FakeMediaStore, MediaStoreError
from media.port import DeleteStatus, MediaRef, MediaStore, MediaUpload
from media.saga import ResourceCompensationSaga

__all__ = [
    "DeleteStatus",
    "FakeMediaStore",
    "MediaRef",
    "MediaStore",
    "MediaStoreError",
    "MediaUpload",
    "ResourceCompensationSaga",
]
