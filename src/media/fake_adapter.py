"""Configurable fake media store for development and testing.

Simulates an image host without any external calls. It can be told to fail
specific uploads (by call number) or deletes (by public id), and it records
the most recent calls (up to ``history``) so tests can assert on what was
attempted.
"""

import threading
from uuid import uuid4

from media.port import DeleteStatus, MediaRef, MediaStore, MediaUpload


class MediaStoreError(Exception):
    """Raised by the fake store for configured failures."""


class FakeMediaStore(MediaStore):
    def __init__(self, folder: str = "Posters", history: int = 1000) -> None:
        self.folder = folder
        self.history = history
        self.fail_uploads: set[int] = set()
        self.fail_deletes: set[str] = set()
        self.calls: list[dict] = []
        self._assets: dict[str, MediaRef] = {}
        self._upload_count = 0
        self._lock = threading.Lock()

    def configure(self, fail_uploads=(), fail_deletes=()) -> None:
        """Fail the given 1-based upload call numbers and delete ids."""
        self.fail_uploads = set(fail_uploads)
        self.fail_deletes = set(fail_deletes)

    def _record(self, call: dict) -> None:
        self.calls.append(call)
        if len(self.calls) > self.history:
            del self.calls[: len(self.calls) - self.history]

    @property
    def stored_ids(self) -> set[str]:
        with self._lock:
            return set(self._assets)

    def upload(self, upload: MediaUpload) -> MediaRef:
        with self._lock:
            self._upload_count += 1
            call_number = self._upload_count
            self._record({"method": "upload", "filename": upload.filename, "call": call_number})

        if call_number in self.fail_uploads:
            raise MediaStoreError(f"Upload of {upload.filename} rejected by media host")

        public_id = f"{self.folder}/{uuid4().hex[:20]}"
        fmt = upload.content_type.split("/")[-1] if "/" in upload.content_type else None
        ref = MediaRef(
            public_id=public_id,
            url=f"https://media.example.com/{public_id}.{fmt or 'bin'}",
            format=fmt,
            width=800,
            height=600,
        )
        with self._lock:
            self._assets[public_id] = ref
        return ref

    def delete(self, public_id: str) -> DeleteStatus:
        with self._lock:
            self._record({"method": "delete", "public_id": public_id})

        if public_id in self.fail_deletes:
            raise MediaStoreError(f"Delete of {public_id} failed on media host")

        with self._lock:
            if self._assets.pop(public_id, None) is None:
                return DeleteStatus.NOT_FOUND
        return DeleteStatus.OK
