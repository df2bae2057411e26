"""Media store port (abstract interface).

Defines the contract every media host adapter must implement. Uploads return
a stable public id plus URL and image metadata; deletes are idempotent and
report whether the asset was still there.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class DeleteStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not found"


@dataclass(frozen=True)
class MediaUpload:
    """A file received from a client, not yet stored anywhere."""

    content: bytes
    filename: str = "upload"
    content_type: str = "image/jpeg"


@dataclass(frozen=True)
class MediaRef:
    """A stored asset, owned by whichever record references it."""

    public_id: str
    url: str
    format: str | None = None
    width: int | None = None
    height: int | None = None

    def to_dict(self) -> dict:
        return {
            "public_id": self.public_id,
            "url": self.url,
            "format": self.format,
            "width": self.width,
            "height": self.height,
        }


class MediaStore(ABC):
    @abstractmethod
    def upload(self, upload: MediaUpload) -> MediaRef:
        """Store the bytes and return a reference to them."""
        ...

    @abstractmethod
    def delete(self, public_id: str) -> DeleteStatus:
        """Delete an asset. Deleting a missing asset reports NOT_FOUND."""
        ...
