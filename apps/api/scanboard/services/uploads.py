"""Video submission service layer."""

from datetime import UTC, datetime
import logging

from scanboard.adapters.vendor.base import VendorClient, VideoUpload
from scanboard.adapters.vendor.errors import VendorError
from scanboard.errors import ApiError, LocalPersistenceFailed
from scanboard.repositories.base import JobRecord, JobRecordStore, StoreError
from scanboard.schemas.job import Job, JobStatus, ScanOptions
from scanboard.services.jobs import to_job
from scanboard.services.vendor_errors import vendor_api_error

logger = logging.getLogger(__name__)

_INITIAL_STATUS = JobStatus.QUEUING
_PLACEHOLDER_TITLES = frozenset({"untitled"})


class UploadService:
    def __init__(self, store: JobRecordStore, vendor: VendorClient) -> None:
        self._store = store
        self._vendor = vendor

    def submit_video(self, *, video: VideoUpload, title: str, options: ScanOptions) -> Job:
        normalized_title = self._normalize_title(title)
        file_name = (video.file_name or "").strip()
        if not file_name or video.size == 0 or (isinstance(video.content, bytes) and not video.content):
            raise ApiError(
                status_code=400,
                code="VALIDATION_ERROR",
                message="A video file is required.",
            )

        try:
            submitted = self._vendor.submit_job(video, options)
        except VendorError as exc:
            logger.warning(
                "upload.vendor_failed file_name=%s error=%s vendor_code=%s",
                file_name,
                type(exc).__name__,
                exc.vendor_code,
            )
            raise vendor_api_error(exc) from exc

        try:
            record = self._persist(submitted.vendor_job_id, file_name=file_name, title=normalized_title)
        except LocalPersistenceFailed as exc:
            # The vendor now owns a job we have no record of; operators must reconcile by hand.
            logger.error(
                "upload.persistence_failed vendor_job_id=%s file_name=%s reason=%s",
                exc.job_id,
                file_name,
                exc.reason,
            )
            raise ApiError(
                status_code=500,
                code="LOCAL_PERSISTENCE_FAILED",
                message="Job was created with the processing service but could not be saved locally.",
                details={"vendor_job_id": exc.job_id},
            ) from exc

        logger.info(
            "upload.submitted vendor_job_id=%s file_name=%s status=%s",
            record.id,
            file_name,
            record.status.value,
        )
        return to_job(record)

    def _persist(self, vendor_job_id: str, *, file_name: str, title: str) -> JobRecord:
        try:
            return self._store.upsert(
                vendor_job_id,
                {"source_name": file_name, "title": title},
                # A reused vendor id must not move an existing record back to the initial status.
                defaults_on_insert={"submitted_at": datetime.now(UTC), "status": _INITIAL_STATUS},
            )
        except StoreError as exc:
            raise LocalPersistenceFailed(vendor_job_id, str(exc)) from exc

    @staticmethod
    def _normalize_title(title: str) -> str:
        normalized = (title or "").strip()
        if normalized and normalized.lower() not in _PLACEHOLDER_TITLES:
            return normalized
        raise ApiError(
            status_code=400,
            code="VALIDATION_ERROR",
            message="A valid model title is required.",
            details={"field": "title"},
        )
