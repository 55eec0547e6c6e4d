"""Reconciliation of vendor status observations into local job records."""

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from typing import Any, Literal

from scanboard.core.logging_safety import safe_url_host
from scanboard.domain.job_fsm import NON_TERMINAL_STATES, is_forward_transition, is_terminal
from scanboard.domain.status_mapper import map_vendor_status
from scanboard.errors import JobNotFoundLocally
from scanboard.repositories.base import JobRecord, JobRecordStore
from scanboard.schemas.job import JobStatus

logger = logging.getLogger(__name__)

ObservationSource = Literal["poll", "webhook"]

DEFAULT_FAILURE_MESSAGE = "Processing failed."


@dataclass(slots=True)
class ReconcileResult:
    record: JobRecord
    applied: bool
    previous_status: JobStatus


class ReconciliationEngine:
    """Applies vendor status observations to job records, whichever path delivered them.

    The poll and webhook paths never coordinate with each other. Convergence comes from two
    rules: a terminal record is never changed again, and the write itself is guarded on the
    record still being non-terminal, so a terminal observation that lands between our read
    and our write is kept. Non-terminal observations are last-write-wins because the vendor
    exposes no per-job sequence number.
    """

    def __init__(self, store: JobRecordStore) -> None:
        self._store = store

    def apply_observation(
        self,
        vendor_job_id: str,
        vendor_status_code: int,
        *,
        model_url: str | None = None,
        thumbnail_url: str | None = None,
        error_message: str | None = None,
        source: ObservationSource = "poll",
    ) -> ReconcileResult:
        new_status = map_vendor_status(vendor_status_code)

        current = self._store.get_by_id(vendor_job_id)
        if current is None:
            logger.warning(
                "reconcile.not_found source=%s job_id=%s vendor_code=%s",
                source,
                vendor_job_id,
                vendor_status_code,
            )
            raise JobNotFoundLocally(vendor_job_id)

        if is_terminal(current.status):
            logger.info(
                "reconcile.noop_terminal source=%s job_id=%s current_status=%s observed_status=%s",
                source,
                vendor_job_id,
                current.status.value,
                new_status.value,
            )
            return ReconcileResult(record=current, applied=False, previous_status=current.status)

        if not is_forward_transition(current.status, new_status):
            logger.warning(
                "reconcile.regression source=%s job_id=%s current_status=%s observed_status=%s",
                source,
                vendor_job_id,
                current.status.value,
                new_status.value,
            )

        updates = self._build_updates(
            new_status,
            model_url=model_url,
            thumbnail_url=thumbnail_url,
            error_message=error_message,
        )
        merged = self._store.merge(vendor_job_id, updates, only_if_status_in=NON_TERMINAL_STATES)
        if merged is None:
            raise JobNotFoundLocally(vendor_job_id)

        updated, written = merged
        if not written:
            logger.info(
                "reconcile.noop_race source=%s job_id=%s stored_status=%s observed_status=%s",
                source,
                vendor_job_id,
                updated.status.value,
                new_status.value,
            )
            return ReconcileResult(record=updated, applied=False, previous_status=current.status)

        logger.info(
            "reconcile.applied source=%s job_id=%s prev_status=%s new_status=%s model_url_host=%s",
            source,
            vendor_job_id,
            current.status.value,
            updated.status.value,
            safe_url_host(updated.model_url),
        )
        return ReconcileResult(record=updated, applied=True, previous_status=current.status)

    @staticmethod
    def _build_updates(
        new_status: JobStatus,
        *,
        model_url: str | None,
        thumbnail_url: str | None,
        error_message: str | None,
    ) -> dict[str, Any]:
        updates: dict[str, Any] = {"status": new_status}
        # Vendor-supplied URLs are only ever added, never cleared.
        if thumbnail_url:
            updates["thumbnail_url"] = thumbnail_url
        if new_status is JobStatus.COMPLETED:
            updates["completed_at"] = datetime.now(UTC)
            if model_url:
                updates["model_url"] = model_url
        elif new_status is JobStatus.FAILED:
            updates["error_message"] = error_message or DEFAULT_FAILURE_MESSAGE
        return updates
