"""Translation of vendor status codes into the local job lifecycle."""

import logging

from scanboard.schemas.job import JobStatus

logger = logging.getLogger(__name__)

VENDOR_STATUS_MAP: dict[int, JobStatus] = {
    -1: JobStatus.UPLOADING,
    0: JobStatus.PROCESSING,
    1: JobStatus.FAILED,
    2: JobStatus.COMPLETED,
    3: JobStatus.QUEUING,
    4: JobStatus.EXPIRED,
}

UNKNOWN_CODE_FALLBACK = JobStatus.PROCESSING


def map_vendor_status(code: int) -> JobStatus:
    """Map a vendor status code; unknown codes fall back to ``processing``."""
    status = VENDOR_STATUS_MAP.get(code)
    if status is None:
        logger.warning(
            "status_mapper.unknown_code vendor_code=%s fallback_status=%s",
            code,
            UNKNOWN_CODE_FALLBACK.value,
        )
        return UNKNOWN_CODE_FALLBACK
    return status
