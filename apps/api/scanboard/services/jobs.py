"""Job service layer."""

import logging

from scanboard.adapters.vendor.base import VendorClient
from scanboard.adapters.vendor.errors import VendorError
from scanboard.core.logging_safety import safe_log_identifier
from scanboard.domain.job_fsm import is_terminal
from scanboard.errors import ApiError, JobNotFoundLocally
from scanboard.repositories.base import JobRecord, JobRecordStore, StoreError
from scanboard.schemas.job import AccountBalance, DownloadLink, Job
from scanboard.services.reconciliation import ReconciliationEngine
from scanboard.services.vendor_errors import vendor_api_error

logger = logging.getLogger(__name__)


def _not_found() -> ApiError:
    return ApiError(status_code=404, code="RESOURCE_NOT_FOUND", message="Resource not found")


def to_job(record: JobRecord) -> Job:
    return Job(
        id=record.id,
        source_name=record.source_name,
        title=record.title,
        status=record.status,
        submitted_at=record.submitted_at,
        updated_at=record.updated_at,
        completed_at=record.completed_at,
        model_url=record.model_url,
        thumbnail_url=record.thumbnail_url,
        error_message=record.error_message,
    )


class JobService:
    def __init__(self, store: JobRecordStore, vendor: VendorClient) -> None:
        self._store = store
        self._vendor = vendor
        self._engine = ReconciliationEngine(store)

    def list_jobs(self) -> list[Job]:
        return [to_job(record) for record in self._store.list_all()]

    def get_job(self, *, job_id: str) -> Job:
        record = self._store.get_by_id(job_id)
        if record is None:
            raise _not_found()
        return to_job(record)

    def poll_job(self, *, job_id: str, correlation_id: str) -> Job:
        """Refresh a job from the vendor and return the reconciled record.

        A failed vendor call leaves the stored record untouched; the caller sees the error
        and keeps showing the last reconciled status.
        """
        safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
        record = self._store.get_by_id(job_id)
        if record is None:
            raise _not_found()
        if is_terminal(record.status):
            # Terminal records never change again, so there is nothing to ask the vendor.
            return to_job(record)

        try:
            observation = self._vendor.fetch_status(job_id)
        except VendorError as exc:
            logger.warning(
                "poll.vendor_failed correlation_id=%s job_id=%s error=%s vendor_code=%s current_status=%s",
                safe_correlation_id,
                job_id,
                type(exc).__name__,
                exc.vendor_code,
                record.status.value,
            )
            raise vendor_api_error(exc) from exc

        try:
            result = self._engine.apply_observation(
                job_id,
                observation.vendor_status_code,
                model_url=observation.model_url,
                thumbnail_url=observation.thumbnail_url,
                error_message=observation.error_message,
                source="poll",
            )
        except JobNotFoundLocally as exc:
            raise _not_found() from exc
        except StoreError as exc:
            logger.error(
                "poll.persistence_failed correlation_id=%s job_id=%s vendor_code=%s reason=%s",
                safe_correlation_id,
                job_id,
                observation.vendor_status_code,
                exc,
            )
            raise ApiError(
                status_code=500,
                code="LOCAL_PERSISTENCE_FAILED",
                message="Vendor status could not be saved locally.",
                details={"vendor_job_id": job_id, "current_status": record.status.value},
            ) from exc

        logger.info(
            "poll.reconciled correlation_id=%s job_id=%s applied=%s status=%s",
            safe_correlation_id,
            job_id,
            result.applied,
            result.record.status.value,
        )
        return to_job(result.record)

    def get_download_link(self, *, job_id: str) -> DownloadLink:
        record = self._store.get_by_id(job_id)
        if record is None:
            raise _not_found()

        try:
            location = self._vendor.fetch_artifact_location(job_id)
        except VendorError as exc:
            logger.warning(
                "download_link.vendor_failed job_id=%s error=%s vendor_code=%s",
                job_id,
                type(exc).__name__,
                exc.vendor_code,
            )
            raise vendor_api_error(exc) from exc
        return DownloadLink(job_id=job_id, model_url=location.url)

    def get_balance(self) -> AccountBalance:
        try:
            balance = self._vendor.fetch_balance()
        except VendorError as exc:
            logger.warning("balance.vendor_failed error=%s vendor_code=%s", type(exc).__name__, exc.vendor_code)
            raise vendor_api_error(exc) from exc
        return AccountBalance(balance=balance)
