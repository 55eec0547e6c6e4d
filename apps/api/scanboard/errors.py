"""Application exception types."""

from scanboard.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


class JobNotFoundLocally(Exception):
    """Raised when an observation targets a vendor job id with no local record."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found locally")


class LocalPersistenceFailed(Exception):
    """Raised when the vendor accepted a job but the local record could not be written."""

    def __init__(self, job_id: str, reason: str) -> None:
        self.job_id = job_id
        self.reason = reason
        super().__init__(f"Job {job_id} accepted by vendor but not persisted: {reason}")


__all__ = ["ApiError", "JobNotFoundLocally", "LocalPersistenceFailed"]
