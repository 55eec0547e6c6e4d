"""Job API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class JobStatus(str, Enum):
    UPLOADING = "uploading"
    QUEUING = "queuing"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"


class ScanOptions(BaseModel):
    """Vendor processing options sent along with a photo-scan video."""

    model_config = ConfigDict(protected_namespaces=())

    model_quality: str = "1"
    texture_quality: str = "1"
    file_format: str = "GLB"
    is_mask: str = "1"
    texture_smoothing: str = "1"


class Job(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: str
    source_name: str
    title: str | None = None
    status: JobStatus
    submitted_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    model_url: str | None = None
    thumbnail_url: str | None = None
    error_message: str | None = None


class SubmitVideoResponse(BaseModel):
    id: str
    job: Job


class DownloadLink(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    job_id: str
    model_url: str


class AccountBalance(BaseModel):
    balance: float
