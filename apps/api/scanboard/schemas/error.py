"""API error response schemas."""

from typing import Any
from typing import Literal

from pydantic import BaseModel

from scanboard.schemas.job import JobStatus


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class NoLeakNotFoundError(BaseModel):
    code: Literal["RESOURCE_NOT_FOUND"]
    message: str


class VendorErrorDetails(BaseModel):
    vendor_code: int | None = None
    vendor_message: str | None = None


class VendorFailureError(BaseModel):
    code: Literal[
        "VENDOR_UNAVAILABLE",
        "VENDOR_REJECTED",
        "VENDOR_PROTOCOL_ERROR",
        "JOB_NOT_FOUND_UPSTREAM",
        "ARTIFACT_NOT_READY",
    ]
    message: str
    details: VendorErrorDetails | None = None


class PersistenceFailureDetails(BaseModel):
    vendor_job_id: str
    current_status: JobStatus | None = None


class PersistenceFailureError(BaseModel):
    code: Literal["LOCAL_PERSISTENCE_FAILED"]
    message: str
    details: PersistenceFailureDetails


class WebhookRejectedError(BaseModel):
    code: Literal[
        "WEBHOOK_DISABLED",
        "SIGNATURE_MISSING",
        "SIGNATURE_INVALID",
        "WEBHOOK_PAYLOAD_INVALID",
        "WEBHOOK_PROCESSING_FAILED",
    ]
    message: str
