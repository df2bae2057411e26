"""Resource compensation saga for media attached to orders and reviews.

Two phases:

1. ``acquire`` uploads every file (fanned out over a worker pool) and waits
   for all of them to settle. If any upload failed, the ones that succeeded
   are deleted before the failure is returned, so a partially failed batch
   never leaves media behind.
2. ``commit`` persists the owning record with the acquired refs. If that
   write fails, every ref from the same ``acquire`` is deleted.

Deletion is best-effort: a failed delete is logged and listed in the
``CompensationReport`` but never turns a result into a failure. Orphaned
media is tolerated; orphaned records are not.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait


from media.port import MediaRef, MediaStore, MediaUpload
from shared.logging import get_logger
from shared.result import CompensationReport, ErrorKind, Result

logger = get_logger(__name__)


class ResourceCompensationSaga:
    def __init__(self, media_store: MediaStore, max_workers: int = 4) -> None:
        self._store = media_store
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="media")

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # -------------------------------------------------------------------
    # Phase 1: acquire
    # -------------------------------------------------------------------
    def acquire(self, uploads: list[MediaUpload]) -> Result[list[MediaRef]]:
        if not uploads:
            return Result.success([])

        futures = [self._executor.submit(self._store.upload, upload) for upload in uploads]
        wait(futures)

        refs: list[MediaRef] = []
        failed_files: list[str] = []
        for upload, future in zip(uploads, futures, strict=True):
            exc = future.exception()
            if exc is None:
                refs.append(future.result())
            else:
                logger.warning("Media upload failed", filename=upload.filename, error=str(exc))
                failed_files.append(upload.filename)

        if failed_files:
            report = self.release(refs)
            return Result.failure(
                ErrorKind.STORAGE_FAILURE,
                f"Failed to upload {len(failed_files)} of {len(uploads)} images",
                compensation=report,
                failed_files=failed_files,
            )

        logger.debug("Media acquired", count=len(refs))
        return Result.success(refs)

    # -------------------------------------------------------------------
    # Phase 2: commit
    # -------------------------------------------------------------------
    def commit(self, refs: list[MediaRef], persist: Callable[[list[MediaRef]], Result]) -> Result:
        """Run ``persist`` with the refs; compensate them if it does not succeed."""
        try:
            result = persist(refs)
        except Exception as exc:
            logger.error("Write failed after media upload", error=str(exc), ref_count=len(refs))
            result = Result.failure(ErrorKind.STORAGE_FAILURE, "Failed to save record", reason=str(exc))

        if result.ok:
            return result
        return result.with_compensation(self.compensate(refs))

    def compensate(self, refs: list[MediaRef]) -> CompensationReport:
        if refs:
            logger.info("Compensating uploaded media", public_ids=[ref.public_id for ref in refs])
        return self.release(refs)

    # -------------------------------------------------------------------
    # Unconditional release
    # -------------------------------------------------------------------
    def release(self, refs: list[MediaRef]) -> CompensationReport:
        """Delete every ref, waiting for all deletes to settle."""
        if not refs:
            return CompensationReport()

        futures = [self._executor.submit(self._store.delete, ref.public_id) for ref in refs]
        wait(futures)

        failed = []
        for ref, future in zip(refs, futures, strict=True):
            exc = future.exception()
            if exc is not None:
                logger.warning("Media delete failed", public_id=ref.public_id, error=str(exc))
                failed.append(ref.public_id)

        return CompensationReport(
            attempted=tuple(ref.public_id for ref in refs),
            failed=tuple(failed),
        )
